"""StoreRank: product ranking engine for the marketplace catalog."""

__version__ = "1.0.0"
