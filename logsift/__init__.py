"""Error fingerprinting and clustering for application logs."""

__version__ = "0.1.0"
