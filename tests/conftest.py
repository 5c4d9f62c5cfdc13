"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: conftest.py
@DateTime: 2026-10-17
@Docs: Shared test fixtures for the device inventory test suite.
测试套件的公共 fixtures。
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

from device_inventory.config import InventoryConfig
from device_inventory.directory import InMemoryUserDirectory
from device_inventory.schemas import DeviceCreate, DeviceRead, Principal, UserInfo
from device_inventory.service import InventoryService

ADMIN_ID = 1
ASSIGNEE_ID = 7
INACTIVE_USER_ID = 8


@pytest.fixture
def config(tmp_path: Path) -> InventoryConfig:
    """Return an InventoryConfig rooted at tmp_path (file-backed SQLite).
    返回以 tmp_path 为根的 InventoryConfig（基于文件的 SQLite）。
    """
    return InventoryConfig(base_dir=tmp_path)


@pytest.fixture
def users() -> InMemoryUserDirectory:
    """Directory with an admin, an active assignee and an inactive user.
    包含管理员、可领用用户与停用用户的目录。
    """
    return InMemoryUserDirectory(
        [
            UserInfo(id=ADMIN_ID, name="Admin", email="admin@example.com", role="admin"),
            UserInfo(id=ASSIGNEE_ID, name="Ada Lovelace", email="ada@example.com"),
            UserInfo(id=INACTIVE_USER_ID, name="Former Staff", email="former@example.com", active=False),
        ]
    )


@pytest.fixture
async def service(config: InventoryConfig, users: InMemoryUserDirectory) -> AsyncGenerator[InventoryService, None]:
    """Bootstrapped inventory service; disposed after the test.
    已初始化的台账服务；测试结束后释放。
    """
    svc = InventoryService.from_config(config, users)
    await svc.bootstrap()
    yield svc
    await svc.aclose()


@pytest.fixture
def admin() -> Principal:
    return Principal(id=ADMIN_ID, role="admin")


@pytest.fixture
def inactive_principal() -> Principal:
    return Principal(id=INACTIVE_USER_ID, is_active=False)


@pytest.fixture
def make_device(service: InventoryService) -> Callable[..., Awaitable[DeviceRead]]:
    """Factory creating a device with sensible defaults.
    使用合理默认值创建设备的工厂。
    """

    async def _make(hostname: str = "sw-01", ip_address: str = "10.0.0.5", **fields: Any) -> DeviceRead:
        fields.setdefault("device_type", "Switch")
        return await service.registry.create(DeviceCreate(hostname=hostname, ip_address=ip_address, **fields))

    return _make
