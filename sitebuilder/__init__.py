"""Site builder and domain reseller backend."""

__version__ = "0.1.0"
