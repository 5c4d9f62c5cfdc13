"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_constraint_parser.py
@DateTime: 2026-10-17
@Docs: Tests for constraint_parser.py module.
constraint_parser.py 模块测试。
"""

from device_inventory.constraint_parser import (
    conflict_from_integrity_error,
    is_unique_constraint_error,
    is_version_slot_collision,
    parse_unique_constraint_error,
)
from device_inventory.exceptions import ConflictError


class _WrappedError(Exception):
    """Mimics SQLAlchemy's IntegrityError wrapping a driver error in `.orig`.
    模拟 SQLAlchemy IntegrityError 通过 `.orig` 包装驱动异常。
    """

    def __init__(self, orig: Exception) -> None:
        super().__init__(str(orig))
        self.orig = orig


class _PgDriverError(Exception):
    def __init__(self, message: str, detail: str) -> None:
        super().__init__(message)
        self.detail = detail


class TestParsers:
    """Tests for per-database parsers.
    各数据库解析器测试。
    """

    def test_sqlite_strips_table_prefix(self) -> None:
        parsed = parse_unique_constraint_error("UNIQUE constraint failed: device_files.device_id, device_files.version")
        assert parsed is not None
        assert parsed.db_type == "sqlite"
        assert parsed.columns == ["device_id", "version"]

    def test_postgres_detail(self) -> None:
        text = 'duplicate key value violates unique constraint "devices_hostname_key"'
        parsed = parse_unique_constraint_error(text, detail_text="Key (hostname)=(sw-01) already exists.")
        assert parsed is not None
        assert parsed.db_type == "postgresql"
        assert parsed.columns == ["hostname"]
        assert parsed.values == ["sw-01"]
        assert parsed.constraint_name == "devices_hostname_key"

    def test_mysql_key_name(self) -> None:
        parsed = parse_unique_constraint_error("Duplicate entry 'sw-01' for key 'devices.hostname'")
        assert parsed is not None
        assert parsed.db_type == "mysql"
        assert parsed.columns == ["hostname"]
        assert parsed.values == ["sw-01"]

    def test_unrelated_message(self) -> None:
        assert parse_unique_constraint_error("FOREIGN KEY constraint failed") is None
        assert not is_unique_constraint_error("FOREIGN KEY constraint failed")


class TestVersionSlotCollision:
    def test_sqlite_composite(self) -> None:
        exc = _WrappedError(Exception("UNIQUE constraint failed: device_files.device_id, device_files.version"))
        assert is_version_slot_collision(exc)

    def test_postgres_constraint_name(self) -> None:
        orig = _PgDriverError(
            'duplicate key value violates unique constraint "uq_device_files_device_version"',
            "Key (device_id, version)=(1, 2) already exists.",
        )
        assert is_version_slot_collision(_WrappedError(orig))

    def test_hostname_is_not_a_slot_collision(self) -> None:
        exc = _WrappedError(Exception("UNIQUE constraint failed: devices.hostname"))
        assert not is_version_slot_collision(exc)


class TestConflictFromIntegrityError:
    """Tests for conflict_from_integrity_error.
    conflict_from_integrity_error 测试。
    """

    def test_single_column_becomes_field(self) -> None:
        exc = _WrappedError(Exception("UNIQUE constraint failed: devices.hostname"))
        conflict = conflict_from_integrity_error(exc, resource="device")
        assert isinstance(conflict, ConflictError)
        assert conflict.field == "hostname"
        assert conflict.status_code == 409
        assert conflict.details["resource"] == "device"

    def test_non_unique_error_returns_none(self) -> None:
        exc = _WrappedError(Exception("NOT NULL constraint failed: devices.hostname"))
        assert conflict_from_integrity_error(exc, resource="device") is None
