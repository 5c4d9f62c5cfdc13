"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: formats.py
@DateTime: 2026-10-17
@Docs: Report file formats.
报表文件格式。
"""

from enum import StrEnum


class ExportFormat(StrEnum):
    """File formats the device report can be written in.
    设备报表可写出的文件格式。
    """

    CSV = "csv"
    XLSX = "xlsx"


# format -> (extension, media type)
_FORMAT_INFO: dict[ExportFormat, tuple[str, str]] = {
    ExportFormat.CSV: (".csv", "text/csv; charset=utf-8"),
    ExportFormat.XLSX: (".xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
}


def media_type_for(fmt: ExportFormat | str) -> str:
    """Media type sent with a report in `fmt`.
    以 `fmt` 格式发送报表时使用的媒体类型。

    Raises:
        ValueError: Unknown format.
            未知格式。
    """
    return _FORMAT_INFO[ExportFormat(fmt)][1]


def extension_for(fmt: ExportFormat | str) -> str:
    return _FORMAT_INFO[ExportFormat(fmt)][0]
