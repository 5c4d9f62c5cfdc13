"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: directory.py
@DateTime: 2026-10-17
@Docs: User directory contract and principal gate.
用户目录协议与调用方权限校验。

Users live outside the inventory; devices and history reference them by id.
用户位于台账之外；设备与历史记录仅通过 ID 引用用户。
"""

from collections.abc import Iterable
from typing import Protocol

from device_inventory.exceptions import AuthorizationError
from device_inventory.schemas import Principal, UserInfo


class UserDirectory(Protocol):
    """
    External user directory.
    外部用户目录。
    """

    async def get_user(self, user_id: int) -> UserInfo | None:
        """Return the user, or None when unknown.
        返回用户；未知时返回 None。
        """
        ...

    async def list_users(self) -> list[UserInfo]:
        """Return all users ordered by name.
        按姓名排序返回全部用户。
        """
        ...


class InMemoryUserDirectory:
    """
    Dictionary-backed user directory.
    基于字典的用户目录。

    Examples:
        >>> users = InMemoryUserDirectory([UserInfo(id=7, name="Ada", email="ada@example.com")])
        >>> # await users.get_user(7)
    """

    def __init__(self, users: Iterable[UserInfo] = ()) -> None:
        self._users: dict[int, UserInfo] = {u.id: u for u in users}

    def put(self, user: UserInfo) -> None:
        self._users[user.id] = user

    async def get_user(self, user_id: int) -> UserInfo | None:
        return self._users.get(user_id)

    async def list_users(self) -> list[UserInfo]:
        return sorted(self._users.values(), key=lambda u: u.id)


def require_principal(principal: Principal | None) -> Principal:
    """
    Gate an operation on an authenticated, active principal.
    要求调用方为已认证且启用的主体。

    Args:
        principal: Caller identity, None for anonymous.
            调用方身份；匿名时为 None。

    Returns:
        Principal: The same principal.
        Principal: 原主体。

    Raises:
        AuthorizationError: 401 for anonymous, 403 for inactive.
            匿名时 401，停用时 403。
    """
    if principal is None:
        raise AuthorizationError(message="Authentication required / 需要登录")
    if not principal.is_active:
        raise AuthorizationError(
            message="Account is inactive / 账号已停用",
            status_code=403,
            error_code="forbidden",
            details={"principal_id": principal.id},
        )
    return principal
