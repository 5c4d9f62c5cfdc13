"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_assignment.py
@DateTime: 2026-10-17
@Docs: Tests for assignment.py module.
assignment.py 模块测试。
"""

from collections.abc import Awaitable, Callable

import pytest

from device_inventory.exceptions import AuthorizationError, NotFoundError, ValidationError
from device_inventory.schemas import DeviceFilter, DeviceRead, Principal
from device_inventory.service import InventoryService

MakeDevice = Callable[..., Awaitable[DeviceRead]]


def _pair_consistent(device: DeviceRead) -> bool:
    return (device.assigned_user_id is None) == (device.assigned_at is None)


class TestAssign:
    """Tests for AssignmentManager.assign.
    AssignmentManager.assign 测试。
    """

    @pytest.mark.asyncio
    async def test_assign_populates_assignee(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        device = await make_device()
        assigned = await service.assignments.assign(device.id, 7, admin)
        assert assigned.assigned_user_id == 7
        assert assigned.assigned_at is not None
        assert assigned.assigned_to_name == "Ada Lovelace"
        assert assigned.assigned_to_email == "ada@example.com"
        assert _pair_consistent(assigned)

    @pytest.mark.asyncio
    async def test_assigned_device_listed_under_active(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        """assign(7) then list(status=active) shows the assignee / 分配后按 active 列出可见领用人。"""
        device = await make_device()
        await service.assignments.assign(device.id, 7, admin)
        listed = await service.registry.list(DeviceFilter(status="active"))
        assert [d.id for d in listed] == [device.id]
        assert listed[0].assigned_to_name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_history_entry(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        device = await make_device()
        await service.assignments.assign(device.id, 7, admin)
        latest = (await service.history.list(device.id, admin))[0]
        assert latest.action == "assigned"
        assert latest.details == {"assigned_user_id": 7}
        assert latest.actor_user_id == admin.id
        assert latest.actor_name == "Admin"

    @pytest.mark.asyncio
    async def test_reassign_overwrites(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        device = await make_device()
        await service.assignments.assign(device.id, 7, admin)
        reassigned = await service.assignments.assign(device.id, 1, admin)
        assert reassigned.assigned_user_id == 1
        actions = [e.action for e in await service.history.list(device.id, admin)]
        assert actions.count("assigned") == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [999, 8])
    async def test_unknown_or_inactive_user(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal, user_id: int
    ) -> None:
        device = await make_device()
        with pytest.raises(ValidationError) as exc_info:
            await service.assignments.assign(device.id, user_id, admin)
        assert exc_info.value.field == "user_id"
        unchanged = await service.registry.get(device.id)
        assert unchanged.assigned_user_id is None
        assert [e.action for e in await service.history.list(device.id, admin)] == ["created"]

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService, admin: Principal) -> None:
        with pytest.raises(NotFoundError):
            await service.assignments.assign(404, 7, admin)

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, service: InventoryService, make_device: MakeDevice) -> None:
        device = await make_device()
        with pytest.raises(AuthorizationError) as exc_info:
            await service.assignments.assign(device.id, 7, None)
        assert exc_info.value.status_code == 401
        assert (await service.registry.get(device.id)).assigned_user_id is None

    @pytest.mark.asyncio
    async def test_inactive_principal_rejected(
        self, service: InventoryService, make_device: MakeDevice, inactive_principal: Principal
    ) -> None:
        device = await make_device()
        with pytest.raises(AuthorizationError) as exc_info:
            await service.assignments.assign(device.id, 7, inactive_principal)
        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "forbidden"


class TestCheckin:
    """Tests for AssignmentManager.checkin.
    AssignmentManager.checkin 测试。
    """

    @pytest.mark.asyncio
    async def test_checkin_clears_pair(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        device = await make_device()
        await service.assignments.assign(device.id, 7, admin)
        returned = await service.assignments.checkin(device.id, admin)
        assert returned.assigned_user_id is None
        assert returned.assigned_at is None
        assert returned.assigned_to_name is None

    @pytest.mark.asyncio
    async def test_checkin_is_idempotent(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        """Two check-ins: still available, two entries / 两次归还：仍可用，两条记录。"""
        device = await make_device()
        first = await service.assignments.checkin(device.id, admin)
        second = await service.assignments.checkin(device.id, admin)
        for d in (first, second):
            assert d.assigned_user_id is None and _pair_consistent(d)
        entries = [e for e in await service.history.list(device.id, admin) if e.action == "checked_in"]
        assert len(entries) == 2
        assert all(e.details == {} for e in entries)

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, service: InventoryService, make_device: MakeDevice) -> None:
        device = await make_device()
        with pytest.raises(AuthorizationError):
            await service.assignments.checkin(device.id, None)

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService, admin: Principal) -> None:
        with pytest.raises(NotFoundError):
            await service.assignments.checkin(404, admin)
