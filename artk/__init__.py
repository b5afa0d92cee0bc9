"""ARTK installer — variant-aware install, upgrade and recovery CLI."""

__version__ = "1.0.0"
