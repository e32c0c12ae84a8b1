"""Multi-stop route optimizer service."""

__version__ = "0.1.0"
