"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: registry.py
@DateTime: 2026-10-17
@Docs: Device registry: CRUD and filtered search.
设备登记簿：增删改查与过滤检索。

Create and update share one set of field checks, so both enforce the same
rules. A status change is recorded in the history ledger inside the same
transaction as the update.
创建与更新共用同一套字段校验。状态变更在与更新相同的事务中写入历史记录。
"""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from device_inventory.constraint_parser import conflict_from_integrity_error
from device_inventory.db import Database
from device_inventory.directory import UserDirectory
from device_inventory.exceptions import ValidationError
from device_inventory.history import HistoryLedger, device_not_found
from device_inventory.models import Device, DeviceFile, DeviceHistory, DeviceType, Manufacturer
from device_inventory.schemas import (
    DeviceCreate,
    DeviceFilter,
    DeviceRead,
    DeviceStatus,
    DeviceUpdate,
    HistoryAction,
    Principal,
)
from device_inventory.validation import FieldErrors

logger = logging.getLogger(__name__)

FALLBACK_DEVICE_TYPE = "Other"

# Fields that may be omitted from an update but never set to null.
NON_NULLABLE_FIELDS: tuple[str, ...] = ("hostname", "ip_address", "device_type", "status")


def _device_select() -> Select[Any]:
    return (
        select(Device, DeviceType.name, Manufacturer.name)
        .outerjoin(DeviceType, Device.device_type_id == DeviceType.id)
        .outerjoin(Manufacturer, Device.manufacturer_id == Manufacturer.id)
    )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


async def _resolve_lookup(
    session: AsyncSession, model: type[DeviceType] | type[Manufacturer], lookup_id: int, field: str
) -> DeviceType | Manufacturer:
    row = await session.get(model, lookup_id)
    if row is None:
        raise ValidationError(
            message=f"Unknown {field}: {lookup_id} / 无效的 {field}：{lookup_id}",
            field=field,
            details={field: lookup_id},
        )
    return row


def _actor(principal: Principal | None) -> int | None:
    return principal.id if principal is not None else None


class DeviceRegistry:
    """
    Owner of device records.
    设备记录的持有者。

    Args:
        database: Process-scoped database handle.
            进程级数据库句柄。
        history: History ledger for status-change entries.
            用于写入状态变更的历史账本。
        users: User directory used to name assignees.
            用于解析领用人的用户目录。
    """

    def __init__(self, database: Database, history: HistoryLedger, users: UserDirectory) -> None:
        self.database = database
        self.history = history
        self.users = users

    async def _denormalize(self, rows: Sequence[Any]) -> list[DeviceRead]:
        users: dict[int, tuple[str | None, str | None]] = {}
        result: list[DeviceRead] = []
        for device, type_name, manufacturer_name in rows:
            item = DeviceRead.model_validate(device)
            item.device_type_name = type_name
            item.manufacturer_name = manufacturer_name
            if device.assigned_user_id is not None:
                if device.assigned_user_id not in users:
                    user = await self.users.get_user(device.assigned_user_id)
                    users[device.assigned_user_id] = (user.name, user.email) if user else (None, None)
                item.assigned_to_name, item.assigned_to_email = users[device.assigned_user_id]
            result.append(item)
        return result

    async def fetch(self, session: AsyncSession, device_id: int) -> DeviceRead | None:
        """
        Load one denormalized device within an open session.
        在已打开的会话中加载一台设备（含关联名称）。
        """
        row = (await session.execute(_device_select().where(Device.id == device_id))).first()
        if row is None:
            return None
        return (await self._denormalize([row]))[0]

    async def list(self, filter: DeviceFilter | None = None) -> list[DeviceRead]:
        """
        List devices ordered by id.
        按 ID 升序列出设备。

        Args:
            filter: Optional search/status filter.
                可选的搜索/状态过滤条件。

        Returns:
            list[DeviceRead]: Denormalized devices.
            list[DeviceRead]: 含关联名称的设备列表。

        Raises:
            ValidationError: Unknown status value.
                状态值无效。
        """
        filter = filter or DeviceFilter()
        stmt = _device_select()
        search = _blank_to_none(filter.search)
        if search is not None:
            term = search.lower()
            stmt = stmt.where(
                or_(
                    func.lower(Device.hostname).contains(term, autoescape=True),
                    func.lower(Device.ip_address).contains(term, autoescape=True),
                )
            )
        if filter.status:
            errs = FieldErrors()
            errs.status("status", filter.status)
            errs.raise_if_any()
            stmt = stmt.where(Device.status == filter.status)
        stmt = stmt.order_by(Device.id.asc())
        async with self.database.session() as session:
            rows = (await session.execute(stmt)).all()
        return await self._denormalize(rows)

    async def get_or_none(self, device_id: int) -> DeviceRead | None:
        async with self.database.session() as session:
            return await self.fetch(session, device_id)

    async def get(self, device_id: int) -> DeviceRead:
        """
        Get one device.
        获取单台设备。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
        """
        device = await self.get_or_none(device_id)
        if device is None:
            raise device_not_found(device_id)
        return device

    async def create(self, command: DeviceCreate, principal: Principal | None = None) -> DeviceRead:
        """
        Create a device.
        创建设备。

        Args:
            command: Device fields.
                设备字段。
            principal: Caller, recorded as the actor of the `created` entry.
                调用方，记录为 `created` 条目的操作人。

        Returns:
            DeviceRead: The new device.
            DeviceRead: 新设备。

        Raises:
            ValidationError: Missing/malformed field or unknown lookup id.
                字段缺失/格式错误或字典 ID 无效。
            ConflictError: Duplicate hostname.
                主机名重复。
        """
        errs = FieldErrors()
        hostname = errs.required("hostname", command.hostname)
        ip_address = errs.required("ip_address", command.ip_address)
        errs.ip_address("ip_address", ip_address)
        type_label = _blank_to_none(command.device_type)
        if type_label is None and command.device_type_id is None:
            errs.add(
                field="device_type",
                message="device_type or device_type_id is required / 需要 device_type 或 device_type_id",
                type="required",
            )
        status = command.status if command.status is not None else DeviceStatus.ACTIVE.value
        errs.status("status", status)
        errs.raise_if_any()

        async with self.database.session() as session:
            type_name = None
            manufacturer_name = None
            if command.device_type_id is not None:
                type_name = (await _resolve_lookup(session, DeviceType, command.device_type_id, "device_type_id")).name
            if command.manufacturer_id is not None:
                manufacturer_name = (
                    await _resolve_lookup(session, Manufacturer, command.manufacturer_id, "manufacturer_id")
                ).name

            device = Device(
                hostname=hostname,
                ip_address=ip_address,
                device_type=type_label or type_name or FALLBACK_DEVICE_TYPE,
                device_type_id=command.device_type_id,
                manufacturer_id=command.manufacturer_id,
                location=_blank_to_none(command.location),
                status=status,
                notes=_blank_to_none(command.notes),
            )
            session.add(device)
            try:
                await session.flush()
                await self.history.append(
                    device.id,
                    HistoryAction.CREATED,
                    _actor(principal),
                    {"hostname": hostname},
                    session=session,
                )
                await session.commit()
            except IntegrityError as exc:
                conflict = conflict_from_integrity_error(exc, resource="device")
                if conflict is None:
                    raise
                raise conflict from exc

        logger.info(
            "AUDIT | device_created id=%s hostname=%r actor=%s", device.id, device.hostname, _actor(principal)
        )
        result = DeviceRead.model_validate(device)
        result.device_type_name = type_name
        result.manufacturer_name = manufacturer_name
        return result

    async def update(self, device_id: int, command: DeviceUpdate, principal: Principal | None = None) -> DeviceRead:
        """
        Apply a partial update.
        执行部分更新。

        Only supplied fields change. A status change appends one
        `status_changed` entry with ``{from, to}``; other edits append none.
        仅修改已提供的字段。状态变化时追加一条 `status_changed`（``{from, to}``）；其他修改不追加。

        Args:
            device_id: Device id.
                设备 ID。
            command: Partial update.
                部分更新命令。
            principal: Caller, recorded as the actor of a status change.
                调用方，记录为状态变更的操作人。

        Returns:
            DeviceRead: The updated device.
            DeviceRead: 更新后的设备。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
            ValidationError: Malformed field, explicit null on a required
                field or unknown lookup id.
                字段格式错误、必填字段显式置空或字典 ID 无效。
            ConflictError: Duplicate hostname.
                主机名重复。
        """
        changes = command.changes()
        errs = FieldErrors()
        for name in NON_NULLABLE_FIELDS:
            errs.not_null(name, changes)
        if changes.get("hostname") is not None:
            changes["hostname"] = errs.required("hostname", changes["hostname"])
        if changes.get("ip_address") is not None:
            changes["ip_address"] = errs.required("ip_address", changes["ip_address"])
            errs.ip_address("ip_address", changes["ip_address"])
        if changes.get("device_type") is not None:
            changes["device_type"] = errs.required("device_type", changes["device_type"])
        errs.status("status", changes.get("status"))
        errs.raise_if_any()
        for name in ("location", "notes"):
            if name in changes:
                changes[name] = _blank_to_none(changes[name])

        async with self.database.session() as session:
            device = await session.get(Device, device_id)
            if device is None:
                raise device_not_found(device_id)
            new_type: DeviceType | None = None
            if changes.get("device_type_id") is not None:
                new_type = await _resolve_lookup(session, DeviceType, changes["device_type_id"], "device_type_id")
            if changes.get("manufacturer_id") is not None:
                await _resolve_lookup(session, Manufacturer, changes["manufacturer_id"], "manufacturer_id")

            old_status = device.status
            if new_type is not None and "device_type" not in changes and new_type.id != device.device_type_id:
                device.device_type = new_type.name
            for name, value in changes.items():
                setattr(device, name, value)

            try:
                await session.flush()
                if device.status != old_status:
                    await self.history.append(
                        device_id,
                        HistoryAction.STATUS_CHANGED,
                        _actor(principal),
                        {"from": old_status, "to": device.status},
                        session=session,
                    )
                await session.commit()
            except IntegrityError as exc:
                conflict = conflict_from_integrity_error(exc, resource="device")
                if conflict is None:
                    raise
                raise conflict from exc

            logger.info(
                "AUDIT | device_updated id=%s fields=%s actor=%s",
                device_id,
                ",".join(sorted(changes)),
                _actor(principal),
            )
            updated = await self.fetch(session, device_id)
        if updated is None:
            raise device_not_found(device_id)
        return updated

    async def delete(self, device_id: int, principal: Principal | None = None) -> DeviceRead:
        """
        Delete a device with its attachment metadata and history.
        删除设备及其附件元数据与历史记录。

        Stored blobs are left in the sink.
        已存储的文件保留在存储中。

        Returns:
            DeviceRead: The deleted device as it was.
            DeviceRead: 删除前的设备。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
        """
        async with self.database.session() as session:
            existing = await self.fetch(session, device_id)
            if existing is None:
                raise device_not_found(device_id)
            files = await session.execute(delete(DeviceFile).where(DeviceFile.device_id == device_id))
            entries = await session.execute(delete(DeviceHistory).where(DeviceHistory.device_id == device_id))
            await session.execute(delete(Device).where(Device.id == device_id))
            await session.commit()
        logger.info(
            "AUDIT | device_deleted id=%s hostname=%r files=%s history=%s actor=%s",
            device_id,
            existing.hostname,
            files.rowcount,
            entries.rowcount,
            _actor(principal),
        )
        return existing
