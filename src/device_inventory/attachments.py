"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: attachments.py
@DateTime: 2026-10-17
@Docs: Versioned per-device attachment store.
按设备版本化的附件存储。

Upload order / 上传顺序:
    1) store the blob under a fresh locator
       以新的定位符写入文件内容
    2) one transaction: bump `devices.last_file_version`, read
       ``max(version) + 1``, insert under ``UNIQUE(device_id, version)``
       单个事务：递增 `devices.last_file_version`，读取 ``max(version) + 1``，
       在 ``UNIQUE(device_id, version)`` 约束下插入
    3) a version-slot collision rolls back and retries with a fresh version
       版本槽冲突时回滚并以新版本号重试

The counter bump is the first statement of the transaction, so concurrent
uploads for one device queue on the device row before reading the maximum.
计数器递增是事务的第一条语句，因此同一设备的并发上传会先在设备行上排队，再读取最大版本。
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from device_inventory.config import InventoryConfig
from device_inventory.constraint_parser import is_version_slot_collision
from device_inventory.db import Database
from device_inventory.exceptions import NotFoundError, ValidationError, VersionConflictError
from device_inventory.history import device_not_found
from device_inventory.models import Device, DeviceFile
from device_inventory.schemas import DeviceFileRead, Principal
from device_inventory.storage import BlobSink, build_storage_locator

logger = logging.getLogger(__name__)

MAX_STORED_FILENAME_LENGTH = 255


def _file_not_found(device_id: int, file_id: int) -> NotFoundError:
    return NotFoundError(
        message=f"File {file_id} not found for device {device_id} / 设备 {device_id} 的文件 {file_id} 不存在",
        resource="file",
        details={"device_id": device_id, "file_id": file_id},
    )


class AttachmentStore:
    """
    Append-only, versioned attachment metadata.
    仅追加的版本化附件元数据。

    Args:
        database: Process-scoped database handle.
            进程级数据库句柄。
        blob_sink: Blob sink holding the bytes.
            保存文件内容的存储。
        config: Inventory configuration (size bound, retry bound).
            台账配置（大小上限、重试上限）。
    """

    def __init__(self, database: Database, blob_sink: BlobSink, config: InventoryConfig) -> None:
        self.database = database
        self.blob_sink = blob_sink
        self.config = config

    def _check_payload(self, data: bytes) -> None:
        if not data:
            raise ValidationError(message="File is empty / 文件为空", field="file")
        if len(data) > self.config.max_upload_bytes:
            raise ValidationError(
                message=(
                    f"File exceeds {self.config.max_upload_bytes} bytes"
                    f" / 文件超过 {self.config.max_upload_bytes} 字节"
                ),
                field="file",
                status_code=413,
                error_code="file_too_large",
                details={"size": len(data), "max_bytes": self.config.max_upload_bytes},
            )

    async def _ensure_device(self, device_id: int) -> None:
        async with self.database.session() as session:
            if await session.get(Device, device_id) is None:
                raise device_not_found(device_id)

    async def _next_version(self, session: AsyncSession, device_id: int) -> int:
        version = await session.scalar(
            select(func.coalesce(func.max(DeviceFile.version), 0) + 1).where(DeviceFile.device_id == device_id)
        )
        return int(version or 1)

    async def _record(
        self,
        device_id: int,
        filename: str,
        locator: str,
        content_type: str | None,
        size: int,
    ) -> DeviceFileRead:
        limit = max(1, self.config.version_retry_limit)
        for attempt in range(1, limit + 1):
            async with self.database.session() as session:
                bumped = await session.execute(
                    update(Device)
                    .where(Device.id == device_id)
                    .values(last_file_version=Device.last_file_version + 1)
                    .execution_options(synchronize_session=False)
                )
                if bumped.rowcount == 0:
                    raise device_not_found(device_id)
                version = await self._next_version(session, device_id)
                row = DeviceFile(
                    device_id=device_id,
                    filename=filename,
                    storage_locator=locator,
                    version=version,
                    content_type=content_type,
                    file_size=size,
                )
                session.add(row)
                try:
                    await session.commit()
                except IntegrityError as exc:
                    if not is_version_slot_collision(exc):
                        raise
                    logger.warning(
                        "Version slot collision device_id=%s version=%s attempt=%d/%d",
                        device_id,
                        version,
                        attempt,
                        limit,
                    )
                    continue
                return DeviceFileRead.model_validate(row)
        raise VersionConflictError(
            message="Could not allocate an attachment version, try again / 无法分配附件版本号，请重试",
            details={"device_id": device_id, "attempts": limit},
        )

    async def add_file(
        self,
        device_id: int,
        filename: str | None,
        data: bytes,
        content_type: str | None = None,
        principal: Principal | None = None,
    ) -> DeviceFileRead:
        """
        Append a new version of a device attachment.
        追加设备附件的新版本。

        Args:
            device_id: Owning device id.
                所属设备 ID。
            filename: Original filename (untrusted).
                原始文件名（不可信）。
            data: File bytes; non-empty and within `max_upload_bytes`.
                文件内容；不可为空且不超过 `max_upload_bytes`。
            content_type: MIME type reported by the uploader.
                上传方提供的 MIME 类型。
            principal: Caller, for the audit log line.
                调用方，仅用于审计日志。

        Returns:
            DeviceFileRead: Metadata of the stored version.
            DeviceFileRead: 已存储版本的元数据。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
            ValidationError: Empty or oversized file.
                文件为空或过大。
            VersionConflictError: Version slot still colliding after retries.
                重试后版本槽仍冲突。
            UpstreamError: Blob sink or datastore unavailable.
                文件存储或数据库不可用。
        """
        self._check_payload(data)
        await self._ensure_device(device_id)
        original = (filename or "").strip()[:MAX_STORED_FILENAME_LENGTH] or "file"
        locator = build_storage_locator(device_id, original)
        await self.blob_sink.store(locator, data)
        try:
            record = await self._record(device_id, original, locator, content_type or None, len(data))
        except Exception:
            await self.blob_sink.discard(locator)
            raise
        logger.info(
            "AUDIT | file_added device_id=%s file_id=%s version=%s size=%d actor=%s",
            device_id,
            record.id,
            record.version,
            record.file_size,
            principal.id if principal is not None else None,
        )
        return record

    async def list_files(self, device_id: int) -> list[DeviceFileRead]:
        """
        List a device's attachments, most recent version first.
        列出设备附件，最新版本在前。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
        """
        async with self.database.session() as session:
            if await session.get(Device, device_id) is None:
                raise device_not_found(device_id)
            stmt = (
                select(DeviceFile)
                .where(DeviceFile.device_id == device_id)
                .order_by(DeviceFile.version.desc(), DeviceFile.uploaded_at.desc())
            )
            rows = (await session.scalars(stmt)).all()
        return [DeviceFileRead.model_validate(r) for r in rows]

    async def get_file(self, device_id: int, file_id: int) -> DeviceFileRead:
        async with self.database.session() as session:
            row = await session.scalar(
                select(DeviceFile).where(DeviceFile.id == file_id, DeviceFile.device_id == device_id)
            )
        if row is None:
            raise _file_not_found(device_id, file_id)
        return DeviceFileRead.model_validate(row)

    async def read_file(self, device_id: int, file_id: int) -> tuple[DeviceFileRead, bytes]:
        """
        Return one version's metadata and bytes.
        返回某个版本的元数据与内容。

        Superseded versions stay readable.
        已被取代的旧版本仍可读取。
        """
        meta = await self.get_file(device_id, file_id)
        return meta, await self.blob_sink.retrieve(meta.storage_locator)
