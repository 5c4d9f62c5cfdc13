"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_history.py
@DateTime: 2026-10-17
@Docs: Tests for history.py module.
history.py 模块测试。
"""

from collections.abc import Awaitable, Callable

import pytest

from device_inventory.exceptions import AuthorizationError, NotFoundError
from device_inventory.schemas import DeviceRead, HistoryAction, Principal
from device_inventory.service import InventoryService

MakeDevice = Callable[..., Awaitable[DeviceRead]]


class TestAppend:
    """Tests for HistoryLedger.append.
    HistoryLedger.append 测试。
    """

    @pytest.mark.asyncio
    async def test_append_commits_on_its_own(
        self, service: InventoryService, make_device: MakeDevice, admin: Principal
    ) -> None:
        device = await make_device()
        entry = await service.history.append(device.id, "note", admin.id, {"text": "rack moved"})
        assert entry.id > 0
        assert entry.created_at is not None
        listed = await service.history.list(device.id, admin)
        assert listed[0].id == entry.id
        assert listed[0].details == {"text": "rack moved"}

    @pytest.mark.asyncio
    async def test_append_without_actor(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        device = await make_device()
        await service.history.append(device.id, HistoryAction.CHECKED_IN)
        latest = (await service.history.list(device.id, admin))[0]
        assert latest.action == "checked_in"
        assert latest.actor_user_id is None
        assert latest.actor_name is None

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService) -> None:
        with pytest.raises(NotFoundError):
            await service.history.append(404, "note")


class TestList:
    """Tests for HistoryLedger.list.
    HistoryLedger.list 测试。
    """

    @pytest.mark.asyncio
    async def test_newest_first(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        device = await make_device()
        for i in range(3):
            await service.history.append(device.id, "note", details={"n": i})
        entries = await service.history.list(device.id, admin)
        assert [e.details for e in entries[:3]] == [{"n": 2}, {"n": 1}, {"n": 0}]
        assert entries[-1].action == "created"

    @pytest.mark.asyncio
    async def test_actor_names_resolved(self, service: InventoryService, make_device: MakeDevice, admin: Principal) -> None:
        """Known actors get name/email, unknown ones stay empty / 已知操作人带姓名邮箱，未知为空。"""
        device = await make_device()
        await service.history.append(device.id, "note", 7)
        await service.history.append(device.id, "note", 999)
        unknown, known = (await service.history.list(device.id, admin))[:2]
        assert (known.actor_name, known.actor_email) == ("Ada Lovelace", "ada@example.com")
        assert unknown.actor_user_id == 999
        assert unknown.actor_name is None and unknown.actor_email is None

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, service: InventoryService, make_device: MakeDevice) -> None:
        device = await make_device()
        with pytest.raises(AuthorizationError) as exc_info:
            await service.history.list(device.id, None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_rejected(
        self, service: InventoryService, make_device: MakeDevice, inactive_principal: Principal
    ) -> None:
        device = await make_device()
        with pytest.raises(AuthorizationError) as exc_info:
            await service.history.list(device.id, inactive_principal)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_device(self, service: InventoryService, admin: Principal) -> None:
        with pytest.raises(NotFoundError):
            await service.history.list(404, admin)
