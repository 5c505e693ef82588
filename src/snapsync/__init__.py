"""SnapSync - Offline-first multi-domain state synchronization."""

__version__ = "0.1.0"
