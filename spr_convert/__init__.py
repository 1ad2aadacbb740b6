"""Convert IMLS State Program Report XML exports to CSV."""

__version__ = "0.1.0"
