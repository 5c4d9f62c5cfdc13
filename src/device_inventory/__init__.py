"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-10-17
@Docs: Package exports for device_inventory.
device_inventory 包导出定义。
"""

from device_inventory.assignment import AssignmentManager
from device_inventory.attachments import AttachmentStore
from device_inventory.config import InventoryConfig, resolve_config
from device_inventory.db import Database
from device_inventory.directory import InMemoryUserDirectory, UserDirectory, require_principal
from device_inventory.exceptions import (
    AuthorizationError,
    ConflictError,
    InventoryError,
    NotFoundError,
    UpstreamError,
    ValidationError,
    VersionConflictError,
)
from device_inventory.exporter import DeviceExporter, Exporter, ExportPayload
from device_inventory.formats import ExportFormat
from device_inventory.history import HistoryLedger
from device_inventory.lookups import LookupCatalog
from device_inventory.registry import DeviceRegistry
from device_inventory.schemas import (
    AssignRequest,
    DeviceCreate,
    DeviceFileRead,
    DeviceFilter,
    DeviceRead,
    DeviceStatus,
    DeviceUpdate,
    HistoryAction,
    HistoryEntryRead,
    LookupCreate,
    LookupRead,
    Principal,
    UserInfo,
)
from device_inventory.service import InventoryService
from device_inventory.storage import BlobSink, build_storage_locator, sanitize_filename
from device_inventory.storage_fs import FilesystemBlobSink

__all__ = [
    "InventoryService",
    "InventoryConfig",
    "resolve_config",
    "Database",
    "LookupCatalog",
    "DeviceRegistry",
    "AssignmentManager",
    "AttachmentStore",
    "HistoryLedger",
    "Exporter",
    "DeviceExporter",
    "ExportPayload",
    "ExportFormat",
    "BlobSink",
    "FilesystemBlobSink",
    "build_storage_locator",
    "sanitize_filename",
    "UserDirectory",
    "InMemoryUserDirectory",
    "require_principal",
    "InventoryError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "VersionConflictError",
    "AuthorizationError",
    "UpstreamError",
    "AssignRequest",
    "DeviceCreate",
    "DeviceFileRead",
    "DeviceFilter",
    "DeviceRead",
    "DeviceStatus",
    "DeviceUpdate",
    "HistoryAction",
    "HistoryEntryRead",
    "LookupCreate",
    "LookupRead",
    "Principal",
    "UserInfo",
]
