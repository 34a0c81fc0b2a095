"""opsim: infrastructure operations tick simulation."""

__version__ = "0.1.0"
