"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: options.py
@DateTime: 2026-10-17
@Docs: Export options.
导出选项。
"""

from dataclasses import dataclass

DEVICE_EXPORT_COLUMNS: tuple[str, ...] = (
    "hostname",
    "ip_address",
    "device_type",
    "manufacturer",
    "status",
    "assigned_to",
    "location",
)


@dataclass(frozen=True, slots=True)
class ExportOptions:
    """Export options (explicit configuration layer).
    导出选项（显式配置层）。

    Attributes:
        filename: Download filename; defaults to ``devices`` plus the format extension.
            下载文件名；默认 ``devices`` 加格式扩展名。
        media_type: HTTP media type override.
            HTTP 媒体类型覆盖。
        include_bom: Prefix CSV output with a UTF-8 BOM.
            CSV 输出是否带 UTF-8 BOM。
        line_ending: CSV line terminator.
            CSV 行结束符。
        chunk_size: Stream chunk size in bytes.
            流分块大小（字节）。
        columns: Column order.
            列顺序。
    """

    filename: str | None = None
    media_type: str | None = None
    include_bom: bool = False
    line_ending: str = "\n"
    chunk_size: int = 64 * 1024
    columns: tuple[str, ...] = DEVICE_EXPORT_COLUMNS
