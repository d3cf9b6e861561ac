"""Group-based peer-to-peer file sharing: a tracker, a client and their protocol."""

__version__ = "0.1.0"
__all__ = ["__version__"]