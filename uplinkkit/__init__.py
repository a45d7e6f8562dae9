"""Erasure-coded streams, ETag readers, retries and listing helpers for object storage clients."""

__version__ = "0.1.0"