"""Python backend for a defunctionalized functional IR."""

__version__ = "0.1.0"
