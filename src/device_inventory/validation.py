"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: validation.py
@DateTime: 2026-10-17
@Docs: Field validation for device commands.
设备命令的字段校验。

Checks collect standardized error items; `raise_if_any()` raises a single
ValidationError whose `field` is the first violated field and whose `details`
lists every violation. Nothing is mutated before this point.
校验项收集标准化错误；`raise_if_any()` 抛出单个 ValidationError，其 `field`
为首个违规字段，`details` 列出全部违规项。在此之前不会发生任何修改。
"""

import re
from dataclasses import dataclass, field
from typing import Any

from device_inventory.exceptions import ValidationError
from device_inventory.schemas import DeviceStatus

# Four dot-separated groups of 1-3 digits; octet range is not checked.
IPV4_PATTERN = re.compile(r"^(?:[0-9]{1,3}\.){3}[0-9]{1,3}$")

STATUS_VALUES: frozenset[str] = frozenset(s.value for s in DeviceStatus)


def is_valid_ip(value: str) -> bool:
    """Return True for a dotted-quad string.
    点分四段格式时返回 True。
    """
    return bool(IPV4_PATTERN.match(value))


def is_valid_status(value: str) -> bool:
    return value in STATUS_VALUES


@dataclass(slots=True)
class FieldErrors:
    """
    Collect field violations for one command.
    收集单个命令的字段违规项。

    Examples:
        >>> errs = FieldErrors()
        >>> errs.ip_address("ip_address", "10.0.0")
        >>> errs.errors[0]["field"]
        'ip_address'
    """

    errors: list[dict[str, Any]] = field(default_factory=list)

    def add(self, *, field: str, message: str, value: Any | None = None, type: str | None = None) -> None:
        """Add an error item.
        添加一个错误项。

        Args:
            field: Field name.
                字段名。
            message: Error message.
                错误消息。
            value: Related value (optional).
                相关值（可选）。
            type: Error type (optional).
                错误类型（可选）。
        """
        item: dict[str, Any] = {"field": field, "message": message}
        if value is not None:
            item["value"] = value
        if type is not None:
            item["type"] = type
        self.errors.append(item)

    def required(self, field: str, value: str | None) -> str | None:
        """
        Require a non-blank string; return the stripped value.
        要求非空字符串，返回去除首尾空白后的值。

        Args:
            field: Field name.
                字段名。
            value: Raw value.
                原始值。

        Returns:
            str | None: Stripped value, or None when blank.
            str | None: 去空白后的值；为空时返回 None。
        """
        stripped = value.strip() if value is not None else ""
        if not stripped:
            self.add(field=field, message=f"{field} is required / {field} 为必填项", type="required")
            return None
        return stripped

    def ip_address(self, field: str, value: str | None) -> None:
        if value is None:
            return
        if not is_valid_ip(value):
            self.add(
                field=field,
                message="Invalid IP address format / IP 地址格式无效",
                value=value,
                type="format",
            )

    def status(self, field: str, value: str | None) -> None:
        if value is None:
            return
        if not is_valid_status(value):
            allowed = ", ".join(sorted(STATUS_VALUES))
            self.add(
                field=field,
                message=f"Status must be one of: {allowed} / 状态必须为：{allowed}",
                value=value,
                type="enum",
            )

    def not_null(self, field: str, changes: dict[str, Any]) -> None:
        """
        Reject an explicit null for a non-nullable field of a partial update.
        拒绝部分更新中对不可为空字段显式设置 null。
        """
        if field in changes and changes[field] is None:
            self.add(field=field, message=f"{field} cannot be null / {field} 不能为空", type="required")

    def raise_if_any(self) -> None:
        """Raise ValidationError when any error was collected.
        若收集到错误则抛出 ValidationError。

        Raises:
            ValidationError: With the first violated field.
                携带首个违规字段。
        """
        if not self.errors:
            return
        first = self.errors[0]
        raise ValidationError(message=first["message"], field=first["field"], details=list(self.errors))
