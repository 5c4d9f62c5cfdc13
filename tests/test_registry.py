"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_registry.py
@DateTime: 2026-10-17
@Docs: Tests for registry.py module.
registry.py 模块测试。
"""

from collections.abc import Awaitable, Callable

import pytest
from sqlalchemy import func, select

from device_inventory.exceptions import ConflictError, NotFoundError, ValidationError
from device_inventory.models import DeviceFile, DeviceHistory
from device_inventory.schemas import DeviceCreate, DeviceFilter, DeviceRead, DeviceUpdate, Principal
from device_inventory.service import InventoryService

MakeDevice = Callable[..., Awaitable[DeviceRead]]


async def _type_id(service: InventoryService, name: str) -> int:
    types = await service.lookups.list_device_types()
    return next(t.id for t in types if t.name == name)


async def _manufacturer_id(service: InventoryService, name: str) -> int:
    manufacturers = await service.lookups.list_manufacturers()
    return next(m.id for m in manufacturers if m.name == name)


class TestCreate:
    """Tests for DeviceRegistry.create.
    DeviceRegistry.create 测试。
    """

    @pytest.mark.asyncio
    async def test_minimal_device_defaults(self, service: InventoryService) -> None:
        """sw-01 defaults to active with no files / sw-01 默认 active 且无附件。"""
        device = await service.registry.create(
            DeviceCreate(hostname="sw-01", ip_address="10.0.0.5", device_type="Switch")
        )
        assert device.id > 0
        assert device.status == "active"
        assert device.device_type == "Switch"
        assert device.assigned_user_id is None and device.assigned_at is None
        assert device.created_at is not None
        assert await service.attachments.list_files(device.id) == []

    @pytest.mark.asyncio
    async def test_type_id_only_uses_catalog_label(self, service: InventoryService) -> None:
        router_id = await _type_id(service, "Router")
        device = await service.registry.create(
            DeviceCreate(hostname="rtr-01", ip_address="10.0.0.1", device_type_id=router_id)
        )
        assert device.device_type == "Router"
        assert device.device_type_id == router_id
        assert device.device_type_name == "Router"

    @pytest.mark.asyncio
    async def test_free_text_wins_over_type_id(self, service: InventoryService) -> None:
        """Free text is the label; the id is still stored / 自由文本为标签，ID 仍然保存。"""
        router_id = await _type_id(service, "Router")
        cisco_id = await _manufacturer_id(service, "Cisco")
        device = await service.registry.create(
            DeviceCreate(
                hostname="edge-01",
                ip_address="10.0.0.2",
                device_type="Edge Router",
                device_type_id=router_id,
                manufacturer_id=cisco_id,
            )
        )
        assert device.device_type == "Edge Router"
        assert device.device_type_id == router_id
        assert device.manufacturer_name == "Cisco"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("fields", "field"),
        [
            ({"hostname": "", "ip_address": "10.0.0.5", "device_type": "Switch"}, "hostname"),
            ({"hostname": "sw", "device_type": "Switch"}, "ip_address"),
            ({"hostname": "sw", "ip_address": "10.0.0", "device_type": "Switch"}, "ip_address"),
            ({"hostname": "sw", "ip_address": "10.0.0.5"}, "device_type"),
            ({"hostname": "sw", "ip_address": "10.0.0.5", "device_type": "Switch", "status": "retired"}, "status"),
            ({"hostname": "sw", "ip_address": "10.0.0.5", "device_type_id": 9999}, "device_type_id"),
            ({"hostname": "sw", "ip_address": "10.0.0.5", "device_type": "X", "manufacturer_id": 9999}, "manufacturer_id"),
        ],
    )
    async def test_validation_names_field(self, service: InventoryService, fields: dict, field: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.registry.create(DeviceCreate(**fields))
        assert exc_info.value.field == field
        assert await service.registry.list() == []

    @pytest.mark.asyncio
    async def test_duplicate_hostname_conflict(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device()
        with pytest.raises(ConflictError) as exc_info:
            await make_device(ip_address="10.0.0.6")
        assert exc_info.value.field == "hostname"
        assert len(await service.registry.list()) == 1

    @pytest.mark.asyncio
    async def test_created_entry_in_history(
        self, service: InventoryService, admin: Principal
    ) -> None:
        device = await service.registry.create(
            DeviceCreate(hostname="sw-01", ip_address="10.0.0.5", device_type="Switch"), admin
        )
        entries = await service.history.list(device.id, admin)
        assert [e.action for e in entries] == ["created"]
        assert entries[0].actor_user_id == admin.id


class TestList:
    """Tests for DeviceRegistry.list.
    DeviceRegistry.list 测试。
    """

    @pytest.mark.asyncio
    async def test_no_filter_orders_by_id(self, service: InventoryService, make_device: MakeDevice) -> None:
        b = await make_device("b-host", "10.0.0.2")
        a = await make_device("a-host", "10.0.0.1")
        assert [d.id for d in await service.registry.list()] == [b.id, a.id]

    @pytest.mark.asyncio
    async def test_search_hostname_case_insensitive(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device("Core-SW-01", "10.0.0.5")
        await make_device("edge-rtr", "192.168.1.1")
        found = await service.registry.list(DeviceFilter(search="core-sw"))
        assert [d.hostname for d in found] == ["Core-SW-01"]

    @pytest.mark.asyncio
    async def test_search_ip_substring(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device("core", "10.0.0.5")
        await make_device("edge", "192.168.1.1")
        found = await service.registry.list(DeviceFilter(search="192.168"))
        assert [d.hostname for d in found] == ["edge"]

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device("core", "10.0.0.5")
        assert await service.registry.list(DeviceFilter(search="%")) == []

    @pytest.mark.asyncio
    async def test_status_filter(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device("up", "10.0.0.1")
        await make_device("down", "10.0.0.2", status="maintenance")
        found = await service.registry.list(DeviceFilter(status="maintenance"))
        assert [d.hostname for d in found] == ["down"]

    @pytest.mark.asyncio
    async def test_unknown_status_filter_rejected(self, service: InventoryService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.registry.list(DeviceFilter(status="retired"))
        assert exc_info.value.field == "status"


class TestGet:
    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService) -> None:
        with pytest.raises(NotFoundError):
            await service.registry.get(12345)
        assert await service.registry.get_or_none(12345) is None


class TestUpdate:
    """Tests for DeviceRegistry.update.
    DeviceRegistry.update 测试。
    """

    @pytest.mark.asyncio
    async def test_partial_update_leaves_other_fields(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        device = await make_device(location="Rack 1", notes="spare")
        updated = await service.registry.update(device.id, DeviceUpdate(location="Rack 2"))
        assert updated.location == "Rack 2"
        assert updated.notes == "spare"
        assert updated.hostname == device.hostname
        assert [e.action for e in await service.history.list(device.id, admin)] == ["created"]

    @pytest.mark.asyncio
    async def test_status_change_appends_one_entry(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        device = await make_device()
        await service.registry.update(device.id, DeviceUpdate(status="maintenance"), admin)
        entries = [e for e in await service.history.list(device.id, admin) if e.action == "status_changed"]
        assert len(entries) == 1
        assert entries[0].details == {"from": "active", "to": "maintenance"}
        assert entries[0].actor_user_id == admin.id

    @pytest.mark.asyncio
    async def test_same_status_appends_nothing(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        device = await make_device()
        await service.registry.update(device.id, DeviceUpdate(status="active"))
        assert [e.action for e in await service.history.list(device.id, admin)] == ["created"]

    @pytest.mark.asyncio
    async def test_explicit_null_clears_optional_field(self, service: InventoryService, make_device: MakeDevice) -> None:
        device = await make_device(location="Rack 1")
        updated = await service.registry.update(device.id, DeviceUpdate.model_validate({"location": None}))
        assert updated.location is None

    @pytest.mark.asyncio
    async def test_explicit_null_on_required_field_rejected(
        self, service: InventoryService, make_device: MakeDevice
    ) -> None:
        device = await make_device()
        with pytest.raises(ValidationError) as exc_info:
            await service.registry.update(device.id, DeviceUpdate.model_validate({"hostname": None}))
        assert exc_info.value.field == "hostname"
        assert (await service.registry.get(device.id)).hostname == device.hostname

    @pytest.mark.asyncio
    async def test_invalid_ip_rejected_without_mutation(
        self, service: InventoryService, make_device: MakeDevice
    ) -> None:
        device = await make_device(location="Rack 1")
        with pytest.raises(ValidationError) as exc_info:
            await service.registry.update(device.id, DeviceUpdate(ip_address="10.0.0.x", location="Rack 9"))
        assert exc_info.value.field == "ip_address"
        assert (await service.registry.get(device.id)).location == "Rack 1"

    @pytest.mark.asyncio
    async def test_type_id_change_refreshes_label(self, service: InventoryService, make_device: MakeDevice) -> None:
        firewall_id = await _type_id(service, "Firewall")
        device = await make_device()
        updated = await service.registry.update(device.id, DeviceUpdate(device_type_id=firewall_id))
        assert updated.device_type == "Firewall"
        assert updated.device_type_name == "Firewall"

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService) -> None:
        with pytest.raises(NotFoundError):
            await service.registry.update(999, DeviceUpdate(location="x"))

    @pytest.mark.asyncio
    async def test_duplicate_hostname(self, service: InventoryService, make_device: MakeDevice) -> None:
        await make_device("sw-01", "10.0.0.1")
        other = await make_device("sw-02", "10.0.0.2")
        with pytest.raises(ConflictError):
            await service.registry.update(other.id, DeviceUpdate(hostname="sw-01"))
        assert (await service.registry.get(other.id)).hostname == "sw-02"


class TestDelete:
    """Tests for DeviceRegistry.delete.
    DeviceRegistry.delete 测试。
    """

    @pytest.mark.asyncio
    async def test_delete_cascades(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        """No orphan files or history remain / 不残留孤立的附件与历史记录。"""
        device = await make_device()
        keep = await make_device("sw-02", "10.0.0.6")
        await service.attachments.add_file(device.id, "config.txt", b"hostname sw-01")
        await service.assignments.assign(device.id, 7, admin)

        deleted = await service.registry.delete(device.id, admin)
        assert deleted.id == device.id

        with pytest.raises(NotFoundError):
            await service.registry.get(device.id)
        async with service.database.session() as session:
            files = await session.scalar(select(func.count()).select_from(DeviceFile).where(DeviceFile.device_id == device.id))
            entries = await session.scalar(
                select(func.count()).select_from(DeviceHistory).where(DeviceHistory.device_id == device.id)
            )
        assert files == 0
        assert entries == 0
        assert [d.id for d in await service.registry.list()] == [keep.id]

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService) -> None:
        with pytest.raises(NotFoundError):
            await service.registry.delete(404)
