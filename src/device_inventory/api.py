"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: api.py
@DateTime: 2026-10-17
@Docs: FastAPI surface over the inventory service.
基于台账服务的 FastAPI 接口层。

The caller identity comes from the auth gateway as request headers:
调用方身份由认证网关通过请求头提供：

        - X-User-ID: principal id; absent means anonymous.
            主体 ID；缺失表示匿名。
        - X-User-Role: role name (default: user).
            角色名（默认 user）。
        - X-User-Active: false for a deactivated account (default: true).
            账号停用时为 false（默认 true）。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, File, Header, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from device_inventory.exceptions import InventoryError
from device_inventory.formats import ExportFormat
from device_inventory.schemas import (
    AssignRequest,
    DeviceCreate,
    DeviceFileRead,
    DeviceFilter,
    DeviceRead,
    DeviceUpdate,
    HistoryEntryRead,
    LookupCreate,
    LookupRead,
    Principal,
    UserInfo,
)
from device_inventory.service import InventoryService
from device_inventory.storage import sanitize_filename


async def get_principal(
    x_user_id: Annotated[int | None, Header()] = None,
    x_user_role: Annotated[str, Header()] = "user",
    x_user_active: Annotated[bool, Header()] = True,
) -> Principal | None:
    """Build the caller principal from gateway headers.
    根据网关请求头构建调用方主体。
    """
    if x_user_id is None:
        return None
    return Principal(id=x_user_id, role=x_user_role, is_active=x_user_active)


CurrentPrincipal = Annotated[Principal | None, Depends(get_principal)]


def _attachment_headers(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{sanitize_filename(filename)}"'}


def create_router(service: InventoryService) -> APIRouter:
    """
    Create the inventory router.
    创建台账路由。

    Args:
        service: Inventory service.
            台账服务。

    Returns:
        APIRouter: Router with lookup, user and device endpoints.
        APIRouter: 包含字典、用户与设备端点的路由。
    """
    router = APIRouter()

    @router.get("/lookups/device-types")
    async def list_device_types() -> list[LookupRead]:
        return await service.lookups.list_device_types()

    @router.post("/lookups/device-types", status_code=status.HTTP_201_CREATED)
    async def add_device_type(body: LookupCreate) -> LookupRead:
        return await service.lookups.add_device_type(body.name)

    @router.get("/lookups/manufacturers")
    async def list_manufacturers() -> list[LookupRead]:
        return await service.lookups.list_manufacturers()

    @router.post("/lookups/manufacturers", status_code=status.HTTP_201_CREATED)
    async def add_manufacturer(body: LookupCreate) -> LookupRead:
        return await service.lookups.add_manufacturer(body.name)

    @router.get("/users")
    async def list_users(principal: CurrentPrincipal) -> list[UserInfo]:
        return await service.list_users(principal)

    @router.get("/devices")
    async def list_devices(search: str | None = None, status: str | None = None) -> list[DeviceRead]:
        """List devices / 设备列表。"""
        return await service.registry.list(DeviceFilter(search=search, status=status))

    @router.get("/devices/export")
    async def export_devices(
        search: str | None = None,
        status: str | None = None,
        fmt: Annotated[ExportFormat, Query(alias="format")] = ExportFormat.CSV,
    ) -> StreamingResponse:
        """Export devices as CSV or XLSX / 导出设备为 CSV 或 XLSX。"""
        payload = await service.exporter.export(fmt, DeviceFilter(search=search, status=status))
        return StreamingResponse(
            payload.stream,
            media_type=payload.media_type,
            headers=_attachment_headers(payload.filename),
        )

    @router.get("/devices/{device_id}")
    async def get_device(device_id: int) -> DeviceRead:
        return await service.registry.get(device_id)

    @router.post("/devices", status_code=status.HTTP_201_CREATED)
    async def create_device(body: DeviceCreate, principal: CurrentPrincipal) -> DeviceRead:
        return await service.registry.create(body, principal)

    @router.put("/devices/{device_id}")
    async def update_device(device_id: int, body: DeviceUpdate, principal: CurrentPrincipal) -> DeviceRead:
        return await service.registry.update(device_id, body, principal)

    @router.delete("/devices/{device_id}")
    async def delete_device(device_id: int, principal: CurrentPrincipal) -> DeviceRead:
        return await service.registry.delete(device_id, principal)

    @router.post("/devices/{device_id}/assign")
    async def assign_device(device_id: int, body: AssignRequest, principal: CurrentPrincipal) -> DeviceRead:
        return await service.assignments.assign(device_id, body.user_id, principal)

    @router.post("/devices/{device_id}/checkin")
    async def checkin_device(device_id: int, principal: CurrentPrincipal) -> DeviceRead:
        return await service.assignments.checkin(device_id, principal)

    @router.get("/devices/{device_id}/history")
    async def device_history(device_id: int, principal: CurrentPrincipal) -> list[HistoryEntryRead]:
        return await service.history.list(device_id, principal)

    @router.get("/devices/{device_id}/files")
    async def list_files(device_id: int) -> list[DeviceFileRead]:
        return await service.attachments.list_files(device_id)

    @router.post("/devices/{device_id}/files", status_code=status.HTTP_201_CREATED)
    async def upload_file(
        device_id: int,
        principal: CurrentPrincipal,
        file: UploadFile = File(...),
    ) -> DeviceFileRead:
        """Upload a new attachment version / 上传新的附件版本。"""
        # One byte past the bound is enough to reject an oversized upload.
        data = await file.read(service.config.max_upload_bytes + 1)
        return await service.attachments.add_file(
            device_id,
            file.filename,
            data,
            content_type=file.content_type,
            principal=principal,
        )

    @router.get("/devices/{device_id}/files/{file_id}/content")
    async def file_content(device_id: int, file_id: int) -> Response:
        meta, data = await service.attachments.read_file(device_id, file_id)
        return Response(
            content=data,
            media_type=meta.content_type or "application/octet-stream",
            headers=_attachment_headers(meta.filename),
        )

    return router


def create_app(service: InventoryService, *, manage_lifecycle: bool = False) -> FastAPI:
    """
    Create the inventory FastAPI app.
    创建台账 FastAPI 应用。

    Args:
        service: Inventory service.
            台账服务。
        manage_lifecycle: Bootstrap on startup and dispose on shutdown.
            启动时初始化、关闭时释放资源。

    Returns:
        FastAPI: App instance.
        FastAPI: 应用实例。
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if manage_lifecycle:
            await service.bootstrap()
        try:
            yield
        finally:
            if manage_lifecycle:
                await service.aclose()

    app = FastAPI(title="Device Inventory", lifespan=lifespan)

    @app.exception_handler(InventoryError)
    async def _inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
        content: dict[str, Any] = {"message": exc.message, "error_code": exc.error_code, "details": exc.details}
        field = getattr(exc, "field", None)
        if field is not None:
            content["field"] = field
        return JSONResponse(status_code=exc.status_code, content=content)

    app.include_router(create_router(service))
    return app
