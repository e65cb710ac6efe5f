"""EventHub: campus events with a client-side state synchronization core."""

__version__ = "0.1.0"
