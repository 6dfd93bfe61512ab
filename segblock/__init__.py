"""segblock - segmented website blocking rules."""

__version__ = "0.1.0"
