"""Alert-driven packet capture service."""

__version__ = "0.1.0"
