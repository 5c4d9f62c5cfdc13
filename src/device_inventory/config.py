"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: config.py
@DateTime: 2026-10-17
@Docs: Device inventory configuration helpers.
设备台账配置助手。

Configuration helpers for the device inventory core.
设备台账核心的配置助手。

Environment variables / 环境变量:
        - DEVICE_INVENTORY_DATABASE_URL:
            SQLAlchemy async database URL.
            SQLAlchemy 异步数据库 URL。
        - DEVICE_INVENTORY_BASE_DIR:
            Base directory for the SQLite file and attachment blobs.
            SQLite 文件与附件存储的根目录。
        - DEVICE_INVENTORY_ATTACHMENTS_DIRNAME:
            Subdirectory name for attachment blobs (default: attachments).
            附件子目录名称（默认 attachments）。
        - DEVICE_INVENTORY_MAX_UPLOAD_BYTES:
            Maximum attachment size in bytes (default: 5 MiB).
            附件最大字节数（默认 5 MiB）。
        - DEVICE_INVENTORY_VERSION_RETRY_LIMIT:
            Retries for attachment version collisions (default: 5).
            附件版本冲突重试次数（默认 5）。
        - DEVICE_INVENTORY_SEED_LOOKUPS:
            Seed default device types/manufacturers on bootstrap (default: true).
            启动时写入默认设备类型/厂商（默认 true）。
        - DEVICE_INVENTORY_ECHO_SQL:
            Echo SQL statements (default: false).
            打印 SQL 语句（默认 false）。

Examples:
        >>> from device_inventory.config import resolve_config
        >>> cfg = resolve_config(base_dir="/tmp/inventory")
        >>> cfg.attachments_dir.name
        'attachments'
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_VERSION_RETRY_LIMIT = 5


@dataclass(frozen=True, slots=True)
class InventoryConfig:
    """Device inventory configuration.

    设备台账配置。

    Attributes:
        base_dir: Base directory of the workspace.
            工作区根目录。
        database_url: SQLAlchemy async database URL.
            SQLAlchemy 异步数据库 URL。
        attachments_dirname: Attachments subdirectory name.
            附件子目录名称。
        max_upload_bytes: Maximum attachment size in bytes.
            附件最大字节数。
        version_retry_limit: Retry bound for attachment version collisions.
            附件版本冲突的重试上限。
        seed_lookups: Whether bootstrap seeds the default lookup vocabulary.
            启动时是否写入默认字典数据。
        echo_sql: Whether the engine echoes SQL.
            引擎是否打印 SQL。
    """

    base_dir: Path
    database_url: str = ""
    attachments_dirname: str = "attachments"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    version_retry_limit: int = DEFAULT_VERSION_RETRY_LIMIT
    seed_lookups: bool = True
    echo_sql: bool = False

    @property
    def attachments_dir(self) -> Path:
        """Return the attachments directory.

        返回附件目录路径。

        Returns:
            Attachments directory path.
                附件目录路径。
        """
        return self.base_dir / self.attachments_dirname

    @property
    def resolved_database_url(self) -> str:
        """Return the database URL, defaulting to a SQLite file under base_dir.

        返回数据库 URL，未配置时默认使用 base_dir 下的 SQLite 文件。
        """
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{(self.base_dir / 'inventory.db').as_posix()}"


def _env_get(*names: str) -> str | None:
    """Get the first non-empty environment variable value.

    获取第一个非空环境变量值。

    Args:
        *names: Candidate environment variable names in priority order.
            候选环境变量名（按优先级顺序）。

    Returns:
        The first non-empty value, or None.
            返回第一个非空值；若都为空则返回 None。
    """
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip():
            return v.strip()
    return None


def _env_int(name: str, default: int) -> int:
    """
    Read a positive integer from the environment.
    从环境变量读取正整数。

    Args:
        name: Environment variable name.
            环境变量名。
        default: Fallback when missing or invalid.
            缺失或非法时的默认值。

    Returns:
        int: Parsed value or default.
        int: 解析值或默认值。
    """
    raw = _env_get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_get(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes", "on")


def resolve_config(
    *,
    base_dir: str | os.PathLike[str] | None = None,
    database_url: str | None = None,
    attachments_dirname: str = "attachments",
    max_upload_bytes: int | None = None,
    version_retry_limit: int | None = None,
    seed_lookups: bool | None = None,
    echo_sql: bool | None = None,
    env_prefix: str = "DEVICE_INVENTORY",
) -> InventoryConfig:
    """Resolve configuration from parameters and environment variables.

    从参数和环境变量解析配置。

    Resolution order / 解析优先级:
        1) function parameters / 函数参数
        2) env: `{env_prefix}_*` / 环境变量 `{env_prefix}_*`
        3) defaults; base_dir falls back to `<temp>/device_inventory`
           默认值；base_dir 回退到 `<temp>/device_inventory`

    Args:
        base_dir: Base directory for the workspace.
            工作区根目录。
        database_url: SQLAlchemy async database URL.
            SQLAlchemy 异步数据库 URL。
        attachments_dirname: Attachments subdirectory name.
            附件子目录名称。
        max_upload_bytes: Maximum attachment size in bytes.
            附件最大字节数。
        version_retry_limit: Retry bound for version collisions.
            版本冲突重试上限。
        seed_lookups: Seed default lookups on bootstrap.
            启动时是否写入默认字典。
        echo_sql: Echo SQL statements.
            是否打印 SQL。
        env_prefix: Prefix for environment variables.
            环境变量前缀（默认 DEVICE_INVENTORY）。

    Returns:
        An InventoryConfig instance.
            返回 InventoryConfig 配置实例。
    """
    env_base_dir = _env_get(f"{env_prefix}_BASE_DIR")
    resolved_base = Path(base_dir) if base_dir is not None else (Path(env_base_dir) if env_base_dir else None)
    if resolved_base is None:
        resolved_base = Path(tempfile.gettempdir()) / "device_inventory"

    return InventoryConfig(
        base_dir=resolved_base,
        database_url=database_url or _env_get(f"{env_prefix}_DATABASE_URL") or "",
        attachments_dirname=_env_get(f"{env_prefix}_ATTACHMENTS_DIRNAME") or attachments_dirname,
        max_upload_bytes=(
            max_upload_bytes
            if max_upload_bytes is not None
            else _env_int(f"{env_prefix}_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
        ),
        version_retry_limit=(
            version_retry_limit
            if version_retry_limit is not None
            else _env_int(f"{env_prefix}_VERSION_RETRY_LIMIT", DEFAULT_VERSION_RETRY_LIMIT)
        ),
        seed_lookups=seed_lookups if seed_lookups is not None else _env_bool(f"{env_prefix}_SEED_LOOKUPS", True),
        echo_sql=echo_sql if echo_sql is not None else _env_bool(f"{env_prefix}_ECHO_SQL", False),
    )
