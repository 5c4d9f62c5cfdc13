"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: history.py
@DateTime: 2026-10-17
@Docs: Append-only history ledger.
仅追加的历史记录账本。

State-changing components pass their own session to `append()` so the entry
commits, or rolls back, together with the change it records.
发生状态变更的组件将自身会话传给 `append()`，使记录与其描述的变更一同提交或回滚。
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from device_inventory.db import Database
from device_inventory.directory import UserDirectory, require_principal
from device_inventory.exceptions import NotFoundError
from device_inventory.models import Device, DeviceHistory
from device_inventory.schemas import HistoryAction, HistoryEntryRead, Principal

logger = logging.getLogger(__name__)


def device_not_found(device_id: int) -> NotFoundError:
    return NotFoundError(
        message=f"Device {device_id} not found / 设备 {device_id} 不存在",
        resource="device",
        details={"device_id": device_id},
    )


class HistoryLedger:
    """
    Per-device audit trail.
    设备审计轨迹。

    Args:
        database: Process-scoped database handle.
            进程级数据库句柄。
        users: User directory used to name actors.
            用于解析操作人的用户目录。
    """

    def __init__(self, database: Database, users: UserDirectory) -> None:
        self.database = database
        self.users = users

    async def _append_in(
        self,
        session: AsyncSession,
        device_id: int,
        action: str,
        actor_user_id: int | None,
        details: dict[str, Any] | None,
    ) -> DeviceHistory:
        if await session.get(Device, device_id) is None:
            raise device_not_found(device_id)
        entry = DeviceHistory(device_id=device_id, action=str(action), actor_user_id=actor_user_id, details=details)
        session.add(entry)
        await session.flush()
        return entry

    async def append(
        self,
        device_id: int,
        action: HistoryAction | str,
        actor_user_id: int | None = None,
        details: dict[str, Any] | None = None,
        *,
        session: AsyncSession | None = None,
    ) -> HistoryEntryRead:
        """
        Append one entry.
        追加一条记录。

        Args:
            device_id: Owning device id.
                所属设备 ID。
            action: Action name.
                动作名称。
            actor_user_id: Principal who caused the change (optional).
                触发变更的主体（可选）。
            details: Structured payload, e.g. ``{"from": ..., "to": ...}``.
                结构化详情，例如 ``{"from": ..., "to": ...}``。
            session: Caller's session; the caller commits. When omitted the
                entry is committed in its own transaction.
                调用方会话，由调用方提交；省略时在独立事务中提交。

        Returns:
            HistoryEntryRead: The stored entry.
            HistoryEntryRead: 已写入的记录。

        Raises:
            NotFoundError: Unknown device.
                设备不存在。
        """
        if session is not None:
            entry = await self._append_in(session, device_id, action, actor_user_id, details)
            return HistoryEntryRead.model_validate(entry)
        async with self.database.session() as own:
            entry = await self._append_in(own, device_id, action, actor_user_id, details)
            await own.commit()
        logger.info("AUDIT | history_appended device_id=%s action=%s actor=%s", device_id, action, actor_user_id)
        return HistoryEntryRead.model_validate(entry)

    async def list(self, device_id: int, principal: Principal | None) -> list[HistoryEntryRead]:
        """
        List a device's entries, newest first.
        按时间倒序列出设备的历史记录。

        Args:
            device_id: Device id.
                设备 ID。
            principal: Caller; must be authenticated and active.
                调用方；必须已认证且启用。

        Returns:
            list[HistoryEntryRead]: Entries with actor name/email when known.
            list[HistoryEntryRead]: 记录列表，已知时附带操作人姓名/邮箱。

        Raises:
            AuthorizationError: Anonymous or inactive caller.
                匿名或停用的调用方。
            NotFoundError: Unknown device.
                设备不存在。
        """
        require_principal(principal)
        async with self.database.session() as session:
            if await session.get(Device, device_id) is None:
                raise device_not_found(device_id)
            stmt = (
                select(DeviceHistory)
                .where(DeviceHistory.device_id == device_id)
                .order_by(DeviceHistory.created_at.desc(), DeviceHistory.id.desc())
            )
            rows = (await session.scalars(stmt)).all()

        entries: list[HistoryEntryRead] = []
        names: dict[int, tuple[str | None, str | None]] = {}
        for row in rows:
            entry = HistoryEntryRead.model_validate(row)
            if row.actor_user_id is not None:
                if row.actor_user_id not in names:
                    user = await self.users.get_user(row.actor_user_id)
                    names[row.actor_user_id] = (user.name, user.email) if user else (None, None)
                entry.actor_name, entry.actor_email = names[row.actor_user_id]
            entries.append(entry)
        return entries
