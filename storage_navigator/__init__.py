"""
Storage navigator.

Unified, navigable view over local disk, FTP, SFTP, S3-compatible object
storage, fsspec filesystems and archive containers.
"""

__version__ = "0.1.0"
