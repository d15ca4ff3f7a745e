"""Book lending server and client that talk over named pipes."""

__version__ = "0.1.0"
__all__ = ["__version__"]