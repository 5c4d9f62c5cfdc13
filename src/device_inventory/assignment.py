"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: assignment.py
@DateTime: 2026-10-17
@Docs: Check-out / check-in of devices.
设备领用 / 归还。

Two states: Available (no assignee) and Assigned (assignee plus timestamp).
`assigned_user_id` and `assigned_at` are always written together.
两种状态：可用（无领用人）与已领用（领用人及时间）。`assigned_user_id` 与
`assigned_at` 始终成对写入。
"""

import logging

from device_inventory.db import Database
from device_inventory.directory import UserDirectory, require_principal
from device_inventory.exceptions import ValidationError
from device_inventory.history import HistoryLedger, device_not_found
from device_inventory.models import Device, utcnow
from device_inventory.registry import DeviceRegistry
from device_inventory.schemas import DeviceRead, HistoryAction, Principal

logger = logging.getLogger(__name__)


class AssignmentManager:
    """
    Assignment state machine over device records.
    基于设备记录的领用状态机。

    Re-assigning an assigned device overwrites the previous assignee.
    对已领用设备再次分配会覆盖原领用人。
    """

    def __init__(
        self,
        database: Database,
        registry: DeviceRegistry,
        history: HistoryLedger,
        users: UserDirectory,
    ) -> None:
        self.database = database
        self.registry = registry
        self.history = history
        self.users = users

    async def assign(self, device_id: int, user_id: int, principal: Principal | None) -> DeviceRead:
        """
        Check a device out to a user.
        将设备分配给用户。

        Args:
            device_id: Device id.
                设备 ID。
            user_id: Target user id; must exist and be active.
                目标用户 ID；必须存在且处于启用状态。
            principal: Caller; must be authenticated and active.
                调用方；必须已认证且启用。

        Returns:
            DeviceRead: The device with its new assignee.
            DeviceRead: 带新领用人的设备。

        Raises:
            AuthorizationError: Anonymous or inactive caller.
                匿名或停用的调用方。
            NotFoundError: Unknown device.
                设备不存在。
            ValidationError: Unknown or inactive user (field ``user_id``).
                用户不存在或已停用（字段 ``user_id``）。
        """
        actor = require_principal(principal)
        async with self.database.session() as session:
            device = await session.get(Device, device_id)
            if device is None:
                raise device_not_found(device_id)
            user = await self.users.get_user(user_id)
            if user is None or not user.active:
                raise ValidationError(
                    message="Invalid or inactive user / 用户不存在或已停用",
                    field="user_id",
                    details={"user_id": user_id},
                )
            previous = device.assigned_user_id
            device.assigned_user_id = user_id
            device.assigned_at = utcnow()
            await session.flush()
            await self.history.append(
                device_id,
                HistoryAction.ASSIGNED,
                actor.id,
                {"assigned_user_id": user_id},
                session=session,
            )
            await session.commit()
            logger.info(
                "AUDIT | device_assigned id=%s user_id=%s previous=%s actor=%s",
                device_id,
                user_id,
                previous,
                actor.id,
            )
            result = await self.registry.fetch(session, device_id)
        if result is None:
            raise device_not_found(device_id)
        return result

    async def checkin(self, device_id: int, principal: Principal | None) -> DeviceRead:
        """
        Return a device; idempotent.
        归还设备；幂等。

        Clears the assignment whatever the current state and always appends a
        `checked_in` entry.
        无论当前状态如何都清除领用信息，并始终追加一条 `checked_in` 记录。

        Raises:
            AuthorizationError: Anonymous or inactive caller.
                匿名或停用的调用方。
            NotFoundError: Unknown device.
                设备不存在。
        """
        actor = require_principal(principal)
        async with self.database.session() as session:
            device = await session.get(Device, device_id)
            if device is None:
                raise device_not_found(device_id)
            previous = device.assigned_user_id
            device.assigned_user_id = None
            device.assigned_at = None
            await session.flush()
            await self.history.append(device_id, HistoryAction.CHECKED_IN, actor.id, {}, session=session)
            await session.commit()
            logger.info("AUDIT | device_checked_in id=%s previous=%s actor=%s", device_id, previous, actor.id)
            result = await self.registry.fetch(session, device_id)
        if result is None:
            raise device_not_found(device_id)
        return result
