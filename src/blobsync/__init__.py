"""blobsync - Content-aware bulk upload of a directory tree to an object store."""

__version__ = "0.3.0"
