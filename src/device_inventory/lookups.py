"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: lookups.py
@DateTime: 2026-10-17
@Docs: Lookup catalog for device types and manufacturers.
设备类型与厂商字典。

Entries are read-mostly; there is no update or delete path because devices
reference them by id.
字典以读为主；由于设备通过 ID 引用字典项，因此不提供修改与删除。
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from device_inventory.constraint_parser import conflict_from_integrity_error
from device_inventory.db import Database
from device_inventory.exceptions import ValidationError
from device_inventory.models import DeviceType, Manufacturer
from device_inventory.schemas import LookupRead

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_TYPES: tuple[str, ...] = ("Router", "Switch", "Firewall", "Server", "Access Point", "Other")
DEFAULT_MANUFACTURERS: tuple[str, ...] = ("Cisco", "Dell", "HP", "Juniper", "Ubiquiti", "Aruba")

type LookupModel = type[DeviceType] | type[Manufacturer]


class LookupCatalog:
    """
    Device type and manufacturer vocabulary.
    设备类型与厂商词表。

    Args:
        database: Process-scoped database handle.
            进程级数据库句柄。
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def _list(self, model: LookupModel) -> list[LookupRead]:
        async with self.database.session() as session:
            rows = (await session.scalars(select(model).order_by(model.name.asc()))).all()
        return [LookupRead.model_validate(r) for r in rows]

    async def _get(self, model: LookupModel, lookup_id: int) -> LookupRead | None:
        async with self.database.session() as session:
            row = await session.get(model, lookup_id)
        return LookupRead.model_validate(row) if row is not None else None

    async def _add(self, model: LookupModel, name: str | None, *, resource: str) -> LookupRead:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError(message="Name is required / 名称为必填项", field="name")
        async with self.database.session() as session:
            row = model(name=cleaned)
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                conflict = conflict_from_integrity_error(exc, resource=resource)
                if conflict is None:
                    raise
                raise conflict from exc
        logger.info("AUDIT | lookup_added resource=%s id=%s name=%r", resource, row.id, cleaned)
        return LookupRead.model_validate(row)

    async def list_device_types(self) -> list[LookupRead]:
        """List device types ordered by name.
        按名称排序列出设备类型。
        """
        return await self._list(DeviceType)

    async def list_manufacturers(self) -> list[LookupRead]:
        """List manufacturers ordered by name.
        按名称排序列出厂商。
        """
        return await self._list(Manufacturer)

    async def get_device_type(self, lookup_id: int) -> LookupRead | None:
        return await self._get(DeviceType, lookup_id)

    async def get_manufacturer(self, lookup_id: int) -> LookupRead | None:
        return await self._get(Manufacturer, lookup_id)

    async def add_device_type(self, name: str | None) -> LookupRead:
        """
        Add a device type.
        新增设备类型。

        Args:
            name: Display name; surrounding whitespace is stripped.
                显示名称；会去除首尾空白。

        Returns:
            LookupRead: The new entry.
            LookupRead: 新字典项。

        Raises:
            ValidationError: Blank name.
                名称为空。
            ConflictError: Name already exists.
                名称已存在。
        """
        return await self._add(DeviceType, name, resource="device_type")

    async def add_manufacturer(self, name: str | None) -> LookupRead:
        """Add a manufacturer (same rules as `add_device_type`).
        新增厂商（规则同 `add_device_type`）。
        """
        return await self._add(Manufacturer, name, resource="manufacturer")

    async def seed_defaults(self) -> int:
        """
        Insert the default vocabulary entries that are missing.
        写入缺失的默认词表项。

        Returns:
            int: Number of rows inserted (0 when already seeded).
            int: 写入的行数（已初始化时为 0）。
        """
        inserted = 0
        async with self.database.session() as session:
            for model, names in ((DeviceType, DEFAULT_DEVICE_TYPES), (Manufacturer, DEFAULT_MANUFACTURERS)):
                existing = set((await session.scalars(select(model.name))).all())
                for name in names:
                    if name not in existing:
                        session.add(model(name=name))
                        inserted += 1
            await session.commit()
        if inserted:
            logger.info("AUDIT | lookups_seeded inserted=%d", inserted)
        return inserted
