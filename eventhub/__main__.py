"""
Package entry point.

Allows running the application via:

    python -m eventhub

This simply forwards execution to eventhub.cli.main().
"""

from eventhub.cli import main

if __name__ == "__main__":
    main()
