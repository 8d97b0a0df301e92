"""Repository transport that stores build artifacts in an S3 bucket."""

__version__ = "0.1.0"
