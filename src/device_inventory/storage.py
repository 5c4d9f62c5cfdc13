"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: storage.py
@DateTime: 2026-10-17
@Docs: Blob sink contract and storage locator helpers.
文件存储协议与存储定位符助手。

The inventory never inspects blob contents. A blob is addressed only by the
locator built here, never by the uploader's filename.
台账从不检查文件内容。文件仅通过此处生成的定位符寻址，而非上传者的文件名。
"""

import re
import time
from typing import Protocol

import uuid6

MAX_FILENAME_LENGTH = 120

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class BlobSink(Protocol):
    """
    Opaque addressable blob store.
    不透明的可寻址文件存储。
    """

    async def store(self, locator: str, data: bytes) -> str:
        """Durably store `data` under `locator` and return the locator.
        将 `data` 持久化到 `locator` 并返回定位符。
        """
        ...

    async def retrieve(self, locator: str) -> bytes:
        """Return the bytes stored under `locator`; NotFoundError when missing.
        返回 `locator` 下的内容；不存在时抛出 NotFoundError。
        """
        ...

    async def discard(self, locator: str) -> None:
        """Best-effort removal of an unreferenced blob.
        尽力删除未被引用的文件。
        """
        ...


def now_ms() -> int:
    """
    Return current unix timestamp in milliseconds.
    返回当前 Unix 时间戳（毫秒）。
    """
    return int(time.time() * 1000)


def sanitize_filename(filename: str | None) -> str:
    """
    Make an untrusted filename safe to embed in a locator.
    将不可信文件名处理为可嵌入定位符的安全形式。

    Directory parts are dropped, whitespace runs collapse to ``_`` and any
    other character outside ``[A-Za-z0-9._-]`` becomes ``_``.
    去除目录部分，连续空白折叠为 ``_``，其余不在 ``[A-Za-z0-9._-]`` 内的字符替换为 ``_``。

    Args:
        filename: Original filename.
            原始文件名。

    Returns:
        str: Sanitized filename, ``file`` when nothing usable remains.
        str: 清理后的文件名；无可用字符时为 ``file``。

    Examples:
        >>> sanitize_filename("core switch  backup.cfg")
        'core_switch_backup.cfg'
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
    """
    base = (filename or "").replace("\\", "/").split("/")[-1].strip()
    safe = _UNSAFE.sub("_", _WHITESPACE.sub("_", base)).lstrip(".")
    if not safe:
        return "file"
    return safe[-MAX_FILENAME_LENGTH:]


def build_storage_locator(device_id: int, filename: str | None) -> str:
    """
    Build a collision-resistant locator for one upload.
    为一次上传生成防碰撞的定位符。

    Format: ``device-{device_id}-{epoch_ms}-{uuid7 hex[:12]}-{sanitized}``.
    格式：``device-{device_id}-{epoch_ms}-{uuid7 hex[:12]}-{sanitized}``。

    Args:
        device_id: Owning device id.
            所属设备 ID。
        filename: Original filename.
            原始文件名。

    Returns:
        str: Storage locator.
        str: 存储定位符。
    """
    return f"device-{device_id}-{now_ms()}-{uuid6.uuid7().hex[:12]}-{sanitize_filename(filename)}"
