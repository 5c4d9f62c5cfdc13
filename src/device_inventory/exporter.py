"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exporter.py
@DateTime: 2026-10-17
@Docs: Exporter abstraction with streaming output.
导出器抽象与流式输出。
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from device_inventory.formats import ExportFormat, extension_for, media_type_for
from device_inventory.options import ExportOptions
from device_inventory.registry import DeviceRegistry
from device_inventory.renderers import render_chunks
from device_inventory.schemas import DeviceFilter, DeviceRead
from device_inventory.serializers import CsvSerializer, Serializer, XlsxSerializer

type ByteStream = AsyncIterator[bytes]
type QueryFn[TTable, TParams] = Callable[[TParams | None], Awaitable[TTable]]
type SerializeFn[TTable] = Callable[[TTable, ExportFormat], Awaitable[bytes]]
type RenderFn = Callable[[bytes, ExportFormat], Awaitable[ByteStream]]


@dataclass(frozen=True, slots=True)
class ExportPayload:
    """
    Export payload.
    导出载荷。

    Attributes:
        filename: Suggested file name.
        filename: 建议文件名。
        media_type: HTTP media type.
        media_type: HTTP 媒体类型。
        stream: Byte stream.
        stream: 字节流。
    """

    filename: str
    media_type: str
    stream: ByteStream


class Exporter[TTable, TParams]:
    """
    Exporter base class.
    导出器基类。

    Lifecycle hooks: query -> serialize -> render.
    生命周期钩子：查询 -> 序列化 -> 渲染。
    """

    def __init__(
        self,
        *,
        query_fn: QueryFn[TTable, TParams],
        serialize_fn: SerializeFn[TTable],
        render_fn: RenderFn,
    ) -> None:
        self._query_fn = query_fn
        self._serialize_fn = serialize_fn
        self._render_fn = render_fn

    async def query(self, *, params: TParams | None = None) -> TTable:
        return await self._query_fn(params)

    async def serialize(self, *, data: TTable, fmt: ExportFormat) -> bytes:
        return await self._serialize_fn(data, fmt)

    async def render(self, *, data: bytes, fmt: ExportFormat) -> ByteStream:
        return await self._render_fn(data, fmt)

    async def stream(
        self,
        *,
        fmt: ExportFormat,
        filename: str,
        media_type: str,
        params: TParams | None = None,
    ) -> ExportPayload:
        """
        Run export lifecycle and return stream payload.
        执行导出生命周期并返回流式载荷。

        Args:
            fmt: Output format.
                输出格式。
            filename: Suggested filename.
                建议文件名。
            media_type: HTTP media type.
                HTTP 媒体类型。
            params: Optional query params.
                可选查询参数。

        Returns:
            ExportPayload: Export stream payload.
            ExportPayload: 导出流式载荷。
        """
        data = await self.query(params=params)
        serialized = await self.serialize(data=data, fmt=fmt)
        stream = await self.render(data=serialized, fmt=fmt)
        return ExportPayload(filename=filename, media_type=media_type, stream=stream)


def device_row(device: DeviceRead) -> dict[str, Any]:
    """
    Flatten a device into an export row.
    将设备展开为导出行。

    The type column prefers the catalog name and falls back to the free-text label.
    类型列优先使用字典名称，缺失时回退到自由文本标签。
    """
    return {
        "hostname": device.hostname,
        "ip_address": device.ip_address,
        "device_type": device.device_type_name or device.device_type,
        "manufacturer": device.manufacturer_name,
        "status": device.status,
        "assigned_to": device.assigned_to_name,
        "location": device.location,
    }


_SERIALIZERS: dict[ExportFormat, Serializer] = {
    ExportFormat.CSV: CsvSerializer(),
    ExportFormat.XLSX: XlsxSerializer(),
}


class DeviceExporter(Exporter[list[DeviceRead], DeviceFilter]):
    """
    Tabular device report over the registry's filtered list.
    基于登记簿过滤结果的设备表格报表。

    Rows follow the registry order (id ascending).
    行顺序与登记簿一致（按 ID 升序）。

    Examples:
        >>> # payload = await DeviceExporter(registry).export_csv(DeviceFilter(status="active"))
        >>> # payload.filename == "devices.csv"
    """

    def __init__(self, registry: DeviceRegistry, *, options: ExportOptions | None = None) -> None:
        self.registry = registry
        self.options = options or ExportOptions()
        super().__init__(query_fn=self._query, serialize_fn=self._serialize, render_fn=self._render)

    async def _query(self, params: DeviceFilter | None) -> list[DeviceRead]:
        return await self.registry.list(params)

    async def _serialize(self, data: list[DeviceRead], fmt: ExportFormat) -> bytes:
        rows: list[Mapping[str, Any]] = [device_row(d) for d in data]
        return _SERIALIZERS[fmt].serialize(data=rows, options=self.options)

    async def _render(self, data: bytes, fmt: ExportFormat) -> ByteStream:
        return render_chunks(data, chunk_size=self.options.chunk_size)

    async def export(self, fmt: ExportFormat | str, filter: DeviceFilter | None = None) -> ExportPayload:
        """
        Export devices matching `filter` in the given format.
        按指定格式导出匹配 `filter` 的设备。

        Args:
            fmt: ``csv`` or ``xlsx``.
                ``csv`` 或 ``xlsx``。
            filter: Optional search/status filter.
                可选的搜索/状态过滤条件。

        Returns:
            ExportPayload: Filename, media type and byte stream.
            ExportPayload: 文件名、媒体类型与字节流。
        """
        key = ExportFormat(fmt)
        filename = self.options.filename or f"devices{extension_for(key)}"
        media_type = self.options.media_type or media_type_for(key)
        return await self.stream(fmt=key, filename=filename, media_type=media_type, params=filter)

    async def export_csv(self, filter: DeviceFilter | None = None) -> ExportPayload:
        return await self.export(ExportFormat.CSV, filter)

    async def export_xlsx(self, filter: DeviceFilter | None = None) -> ExportPayload:
        return await self.export(ExportFormat.XLSX, filter)
