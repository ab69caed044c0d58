"""Paper-trading ledger: simulated cash, positions and trade history."""

__version__ = "0.1.0"
