"""
blobstorageadapter
==================

Thin async adapter over Azure Blob Storage: shared access signature URLs for
blobs and containers, idempotent container creation, and JSON, text and
binary payload reads/writes.

Main entry points:
- BlobStorageAdapter: the adapter class
- BlobSasOptions, ContainerSasOptions: token parameters with their defaults
- WriteResult: what a successful write returns
- Settings, get_settings: environment-driven credentials
- ConfigurationError: raised when credentials are not configured

Example:
    from blobstorageadapter import BlobStorageAdapter

    async with BlobStorageAdapter("myaccount", "<base64 key>") as storage:
        await storage.create_container("reports")
        await storage.write_json("reports", "summary.json", {"ok": True})
        url = storage.generate_blob_sas("reports", "summary.json", 15, "minute")
"""

from .adapter import BlobStorageAdapter, WriteResult

from .sas import BlobSasOptions, ContainerSasOptions, SasWindow, compute_window

from .serializers import Serializer, JSONSerializer, TextSerializer, BinarySerializer

from .config import Settings, get_settings
from .errors import ConfigurationError

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BlobStorageAdapter",
    "WriteResult",
    "BlobSasOptions",
    "ContainerSasOptions",
    "SasWindow",
    "compute_window",
    "Serializer",
    "JSONSerializer",
    "TextSerializer",
    "BinarySerializer",
    "Settings",
    "get_settings",
    "ConfigurationError",
]
