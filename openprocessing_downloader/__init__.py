"""Download OpenProcessing sketches to local folders."""

__version__ = "0.1.0"
