"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: constraint_parser.py
@DateTime: 2026-10-17
@Docs: Multi-database unique constraint error parsing.
多数据库唯一约束错误解析。

Provides parsers for PostgreSQL, MySQL/MariaDB and SQLite unique constraint
error messages, and turns a violation into a ConflictError naming the column.

提供 PostgreSQL、MySQL/MariaDB、SQLite 的唯一约束错误解析器，并将冲突转换为
带列名的 ConflictError。
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from device_inventory.exceptions import ConflictError

VERSION_SLOT_CONSTRAINT = "uq_device_files_device_version"


@dataclass(frozen=True, slots=True)
class ConstraintDetail:
    """Parsed unique constraint violation detail.

    解析后的唯一约束冲突详情。

    Attributes:
        columns: Column names involved in the constraint.
            约束涉及的列名列表。
        values: Conflicting values corresponding to columns.
            与列名对应的冲突值列表。
        constraint_name: Name of the violated constraint (if available).
            违反的约束名称（如果可用）。
        db_type: Database type identifier.
            数据库类型标识符。
    """

    columns: list[str] = field(default_factory=list)
    values: list[str] = field(default_factory=list)
    constraint_name: str | None = None
    db_type: str = "unknown"


_ConstraintParser = Callable[[str, str], ConstraintDetail | None]


def _parse_pg(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse PostgreSQL: ``Key (col1, col2)=(val1, val2) already exists.``
    解析 PostgreSQL 唯一约束错误。
    """
    for source in (detail_text, text):
        if not source:
            continue
        m = re.search(r"Key\s+\((?P<cols>[^)]+)\)=\((?P<vals>[^)]+)\)\s+already exists\.", source)
        if m:
            cols = [c.strip() for c in str(m.group("cols")).split(",") if c.strip()]
            vals = [v.strip() for v in str(m.group("vals")).split(",") if v.strip()]
            cname = None
            cm = re.search(r'unique constraint "(?P<name>[^"]+)"', text)
            if cm:
                cname = cm.group("name")
            return ConstraintDetail(columns=cols, values=vals, constraint_name=cname, db_type="postgresql")
    return None


def _parse_mysql(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse MySQL/MariaDB: ``Duplicate entry 'val' for key 'table.key_name'``
    解析 MySQL/MariaDB 唯一约束错误。
    """
    combined = f"{text} {detail_text}"
    m = re.search(r"Duplicate entry '(?P<val>[^']*)' for key '(?P<key>[^']+)'", combined, re.IGNORECASE)
    if not m:
        return None
    key_name = m.group("key").split(".")[-1]
    # MySQL names a single-column unique index after the column itself.
    columns = [] if key_name.startswith("uq_") or key_name == "PRIMARY" else [key_name]
    return ConstraintDetail(columns=columns, values=[m.group("val")], constraint_name=key_name, db_type="mysql")


def _parse_sqlite(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse SQLite: ``UNIQUE constraint failed: table.col1, table.col2``
    解析 SQLite 唯一约束错误。
    """
    combined = f"{text} {detail_text}"
    m = re.search(r"UNIQUE constraint failed:\s*(?P<cols>.+?)(?:\s*$|\s*\n)", combined, re.IGNORECASE)
    if not m:
        return None
    columns = []
    for part in m.group("cols").split(","):
        part = part.strip()
        if "." in part:
            columns.append(part.split(".")[-1].strip())
        elif part:
            columns.append(part)
    return ConstraintDetail(columns=columns, values=[], constraint_name=None, db_type="sqlite")


_PARSERS: tuple[_ConstraintParser, ...] = (
    _parse_pg,
    _parse_mysql,
    _parse_sqlite,
)


def parse_unique_constraint_error(text: str, *, detail_text: str = "") -> ConstraintDetail | None:
    """Try all registered parsers in order until one matches.

    按顺序尝试所有已注册的解析器，直到匹配为止。

    Args:
        text: Primary error message text.
            主错误信息文本。
        detail_text: Optional detail text (e.g. from PG orig.detail).
            可选的详细错误文本（如 PG orig.detail）。

    Returns:
        ConstraintDetail if any parser matched, None otherwise.
        若有解析器匹配则返回 ConstraintDetail，否则返回 None。
    """
    for parser in _PARSERS:
        result = parser(text, detail_text)
        if result is not None:
            return result
    return None


_UNIQUE_KEYWORDS = (
    "duplicate key value violates unique constraint",  # PostgreSQL
    "duplicate entry",  # MySQL / MariaDB
    "unique constraint failed",  # SQLite
)


def is_unique_constraint_error(text: str, *, detail_text: str = "") -> bool:
    """Check if an error message indicates a unique constraint violation.

    检查错误信息是否表示唯一约束冲突。

    Args:
        text: Primary error message text.
            主错误信息文本。
        detail_text: Optional detail text.
            可选的详细错误文本。

    Returns:
        True if a unique constraint keyword is found.
        若找到唯一约束关键字则返回 True。
    """
    combined = f"{text} {detail_text}".lower()
    return any(kw in combined for kw in _UNIQUE_KEYWORDS)


def _error_texts(exc: BaseException) -> tuple[str, str]:
    # SQLAlchemy wraps the driver error in `.orig`; asyncpg exposes `.detail`.
    orig = getattr(exc, "orig", None) or exc
    return str(orig), str(getattr(orig, "detail", "") or "")


def is_version_slot_collision(exc: BaseException) -> bool:
    """
    Tell whether an integrity error is a (device_id, version) slot collision.
    判断完整性错误是否为 (device_id, version) 版本槽冲突。

    Args:
        exc: Integrity error raised on insert.
            插入时抛出的完整性错误。

    Returns:
        bool: True for a version slot collision.
        bool: 版本槽冲突时返回 True。
    """
    text, detail_text = _error_texts(exc)
    if not is_unique_constraint_error(text, detail_text=detail_text):
        return False
    parsed = parse_unique_constraint_error(text, detail_text=detail_text)
    if parsed is None:
        return VERSION_SLOT_CONSTRAINT in text
    if parsed.constraint_name == VERSION_SLOT_CONSTRAINT:
        return True
    return set(parsed.columns) == {"device_id", "version"}


def conflict_from_integrity_error(exc: BaseException, *, resource: str) -> ConflictError | None:
    """
    Build a ConflictError from a unique-constraint violation.
    将唯一约束冲突转换为 ConflictError。

    Args:
        exc: Integrity error raised by the database.
            数据库抛出的完整性错误。
        resource: Resource label used in the message (e.g. "device").
            消息中使用的资源名（如 "device"）。

    Returns:
        ConflictError | None: The conflict, or None when the error is not a
            unique violation (caller re-raises the original).
        ConflictError | None: 冲突错误；若并非唯一约束冲突则返回 None（由调用方重新抛出原异常）。
    """
    text, detail_text = _error_texts(exc)
    if not is_unique_constraint_error(text, detail_text=detail_text):
        return None
    parsed = parse_unique_constraint_error(text, detail_text=detail_text)
    column = parsed.columns[0] if parsed and len(parsed.columns) == 1 else None
    payload: dict[str, object] = {"resource": resource}
    if parsed is not None:
        payload.update({"columns": parsed.columns, "values": parsed.values, "db_type": parsed.db_type})
        if parsed.constraint_name:
            payload["constraint_name"] = parsed.constraint_name
    label = column or (", ".join(parsed.columns) if parsed and parsed.columns else "key")
    return ConflictError(
        message=f"Duplicate {resource} {label} / {resource} 的 {label} 已存在",
        field=column,
        details=payload,
    )
