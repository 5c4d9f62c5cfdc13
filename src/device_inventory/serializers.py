"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: serializers.py
@DateTime: 2026-10-17
@Docs: Tabular writers for the device report.
设备报表的表格写出器。
"""

import csv
import io
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from device_inventory.exceptions import InventoryError
from device_inventory.options import ExportOptions

type ReportRow = Mapping[str, Any]


class Serializer(Protocol):
    """Writes report rows in one file format.
    以某种文件格式写出报表行。
    """

    def serialize(self, *, data: Iterable[ReportRow], options: ExportOptions) -> bytes: ...


def _cell(value: Any) -> str:
    # Absent values render empty, never as "None"/"null".
    return "" if value is None else str(value)


def _cells(row: ReportRow, columns: tuple[str, ...]) -> list[str]:
    return [_cell(row.get(column)) for column in columns]


class CsvSerializer:
    """CSV writer for the device report.
    设备报表的 CSV 写出器。

    The header line is written as-is; every data field is double-quoted with
    inner quotes doubled.
    表头原样写出；每个数据字段都用双引号包裹，内部双引号加倍转义。

    Examples:
        >>> opts = ExportOptions(columns=("hostname", "location"))
        >>> CsvSerializer().serialize(data=[{"hostname": "sw,a"}], options=opts)
        b'hostname,location\\n"sw,a",""\\n'
    """

    def serialize(self, *, data: Iterable[ReportRow], options: ExportOptions) -> bytes:
        out = io.StringIO()
        out.write(",".join(options.columns))
        out.write(options.line_ending)
        quoted = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator=options.line_ending)
        quoted.writerows(_cells(row, options.columns) for row in data)
        text = out.getvalue()
        return text.encode("utf-8-sig" if options.include_bom else "utf-8")


class XlsxSerializer:
    """Single-sheet workbook for the device report.
    设备报表的单工作表工作簿。

    The sheet is named ``devices``; the header row stays frozen while scrolling.
    工作表名为 ``devices``；表头行滚动时保持冻结。
    """

    sheet_title = "devices"

    def serialize(self, *, data: Iterable[ReportRow], options: ExportOptions) -> bytes:
        workbook = _require_openpyxl()()
        sheet = workbook.active
        if sheet is None:
            raise RuntimeError("Workbook has no active sheet / 工作簿没有活动工作表")
        sheet.title = self.sheet_title
        sheet.append(list(options.columns))
        for row in data:
            sheet.append(_cells(row, options.columns))
        sheet.freeze_panes = "A2"
        out = io.BytesIO()
        workbook.save(out)
        return out.getvalue()


def _require_openpyxl() -> Any:
    """Return openpyxl's Workbook class, or fail with a 501 when the extra is missing.
    返回 openpyxl 的 Workbook 类；未安装扩展时抛出 501 错误。
    """
    try:
        from openpyxl import Workbook
    except ImportError as exc:  # pragma: no cover
        raise InventoryError(
            message="XLSX export needs openpyxl (install extra: xlsx) / XLSX 导出需要 openpyxl（安装 xlsx 扩展）",
            status_code=501,
            details={"error": str(exc)},
            error_code="missing_dependency",
        ) from exc
    return Workbook
