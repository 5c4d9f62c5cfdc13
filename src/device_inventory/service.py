"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: service.py
@DateTime: 2026-10-17
@Docs: Inventory service facade wiring the record-keeping components.
台账服务门面，装配各记录组件。

The facade owns the process-scoped handles (database, blob sink, user
directory) and passes them into each component at construction time:

门面持有进程级句柄（数据库、文件存储、用户目录），并在构建时注入各组件：

        - lookups: device types and manufacturers.
            字典：设备类型与厂商。
        - registry: device CRUD and filtered search.
            登记簿：设备增删改查与过滤检索。
        - assignments: check-out / check-in.
            领用：领用 / 归还。
        - attachments: versioned per-device files.
            附件：按设备版本化的文件。
        - history: append-only audit trail.
            历史：仅追加的审计轨迹。
        - exporter: CSV / XLSX reports.
            导出：CSV / XLSX 报表。
"""

import logging

from device_inventory.assignment import AssignmentManager
from device_inventory.attachments import AttachmentStore
from device_inventory.config import InventoryConfig, resolve_config
from device_inventory.db import Database
from device_inventory.directory import InMemoryUserDirectory, UserDirectory, require_principal
from device_inventory.exporter import DeviceExporter
from device_inventory.history import HistoryLedger
from device_inventory.lookups import LookupCatalog
from device_inventory.registry import DeviceRegistry
from device_inventory.schemas import Principal, UserInfo
from device_inventory.storage import BlobSink
from device_inventory.storage_fs import FilesystemBlobSink

logger = logging.getLogger(__name__)


class InventoryService:
    """Device inventory facade.

    设备台账门面。

    Examples:
        Basic usage / 基本用法:

        >>> # svc = InventoryService.from_config(resolve_config(base_dir="/tmp/inv"), users)
        >>> # await svc.bootstrap()
        >>> # device = await svc.registry.create(DeviceCreate(hostname="sw-01", ...))
        >>> # await svc.aclose()
    """

    def __init__(
        self,
        *,
        database: Database,
        blob_sink: BlobSink,
        users: UserDirectory,
        config: InventoryConfig,
    ) -> None:
        self.database = database
        self.blob_sink = blob_sink
        self.users = users
        self.config = config
        self.lookups = LookupCatalog(database)
        self.history = HistoryLedger(database, users)
        self.registry = DeviceRegistry(database, self.history, users)
        self.assignments = AssignmentManager(database, self.registry, self.history, users)
        self.attachments = AttachmentStore(database, blob_sink, config)
        self.exporter = DeviceExporter(self.registry)

    @classmethod
    def from_config(
        cls,
        config: InventoryConfig | None = None,
        users: UserDirectory | None = None,
    ) -> "InventoryService":
        """Build a service from configuration.

        根据配置构建服务。

        Args:
            config: Inventory configuration; resolved from env when omitted.
                台账配置；省略时从环境变量解析。
            users: User directory; an empty in-memory one when omitted.
                用户目录；省略时使用空的内存目录。

        Returns:
            InventoryService: The service.
                服务实例。
        """
        cfg = config or resolve_config()
        return cls(
            database=Database.from_config(cfg),
            blob_sink=FilesystemBlobSink.from_config(cfg),
            users=users if users is not None else InMemoryUserDirectory(),
            config=cfg,
        )

    async def bootstrap(self) -> None:
        """Create tables and seed default lookups when configured.

        建表，并按配置写入默认字典。
        """
        await self.database.create_all()
        if self.config.seed_lookups:
            await self.lookups.seed_defaults()
        logger.info("Inventory ready database=%s", self.database.engine.url.render_as_string(hide_password=True))

    async def list_users(self, principal: Principal | None) -> list[UserInfo]:
        """List directory users; requires an authenticated active caller.

        列出目录用户；调用方必须已认证且启用。
        """
        require_principal(principal)
        return await self.users.list_users()

    async def aclose(self) -> None:
        await self.database.dispose()
