"""Cross-stitch pattern catalogue service."""

__version__ = "1.0.0"
