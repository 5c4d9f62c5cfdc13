"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: storage_fs.py
@DateTime: 2026-10-17
@Docs: Filesystem blob sink.
文件系统文件存储实现。
"""

import asyncio
import logging
import os
from pathlib import Path

import uuid6

from device_inventory.config import InventoryConfig
from device_inventory.exceptions import NotFoundError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def safe_unlink(path: Path) -> None:
    """
    Best-effort unlink.
    尽力删除文件。

    Args:
        path: File path.
        path: 文件路径。
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove blob %s: %s", path, exc)


class FilesystemBlobSink:
    """
    Blob sink storing one file per locator under a root directory.
    在根目录下按定位符逐个保存文件的存储实现。

    Writes go to a temporary sibling first and are moved into place with
    `os.replace`, so a locator never points at a partial file.
    写入先落到临时文件，再通过 `os.replace` 移动到位，定位符不会指向不完整的文件。

    Args:
        root: Root directory; created on first write.
            根目录；首次写入时创建。
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)

    @classmethod
    def from_config(cls, config: InventoryConfig) -> "FilesystemBlobSink":
        return cls(config.attachments_dir)

    def path_for(self, locator: str) -> Path:
        """
        Resolve a locator to a path inside the root directory.
        将定位符解析为根目录内的路径。

        Raises:
            ValidationError: Locator escapes the root directory.
                定位符越出根目录。
        """
        root = self.root.resolve()
        path = (root / locator).resolve()
        if not locator or path.parent != root:
            raise ValidationError(
                message="Invalid storage locator / 存储定位符无效",
                field="storage_locator",
                details={"locator": locator},
            )
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid6.uuid7().hex}.tmp")
        try:
            with tmp.open("wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        finally:
            safe_unlink(tmp)

    async def store(self, locator: str, data: bytes) -> str:
        path = self.path_for(locator)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            logger.exception("Blob write failed: %s", locator)
            raise UpstreamError(
                message="Attachment storage unavailable / 附件存储不可用",
                details={"locator": locator, "error": str(exc)},
            ) from exc
        return locator

    async def retrieve(self, locator: str) -> bytes:
        path = self.path_for(locator)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise NotFoundError(
                message="Attachment content not found / 附件内容不存在",
                resource="blob",
                details={"locator": locator},
            ) from exc
        except OSError as exc:
            logger.exception("Blob read failed: %s", locator)
            raise UpstreamError(
                message="Attachment storage unavailable / 附件存储不可用",
                details={"locator": locator, "error": str(exc)},
            ) from exc

    async def discard(self, locator: str) -> None:
        await asyncio.to_thread(safe_unlink, self.path_for(locator))
