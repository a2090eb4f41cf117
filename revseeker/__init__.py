"""Recover the source commit behind a container image from its OCI revision label."""

__version__ = "0.1.0"
