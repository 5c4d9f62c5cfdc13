"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: schemas.py
@DateTime: 2026-10-17
@Docs: Command and result structs for the inventory core.
台账核心的命令与结果结构。

Commands keep raw field types; the component owning an invariant validates
it so callers receive the specific violated field.
命令对象保留原始字段类型；由持有约束的组件负责校验，以便调用方获知具体违规字段。
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class DeviceStatus(StrEnum):
    """Device status values.
    设备状态取值。
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class HistoryAction(StrEnum):
    """History ledger actions.
    历史记录动作。
    """

    ASSIGNED = "assigned"
    CHECKED_IN = "checked_in"
    STATUS_CHANGED = "status_changed"
    CREATED = "created"
    DELETED = "deleted"


class Principal(BaseModel):
    """
    Authenticated caller supplied by the auth gateway.
    由认证网关提供的已认证调用方。

    Attributes:
        id: External principal id.
        id: 外部主体 ID。
        role: Role name.
        role: 角色名。
        is_active: Whether the principal is active.
        is_active: 主体是否处于启用状态。
    """

    model_config = ConfigDict(frozen=True)

    id: int
    role: str = "user"
    is_active: bool = True


class UserInfo(BaseModel):
    """User directory record.
    用户目录记录。
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: str = "user"
    active: bool = True


class LookupRead(BaseModel):
    """Lookup entry (device type or manufacturer).
    字典项（设备类型或厂商）。
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class LookupCreate(BaseModel):
    name: str | None = None


class DeviceCreate(BaseModel):
    """
    Create-device command.
    创建设备命令。

    Requires hostname, ip_address and one of device_type/device_type_id;
    requirements are enforced by the registry.
    需要 hostname、ip_address 以及 device_type/device_type_id 之一；由登记簿负责校验。
    """

    model_config = ConfigDict(extra="ignore")

    hostname: str | None = None
    ip_address: str | None = None
    device_type: str | None = None
    device_type_id: int | None = None
    manufacturer_id: int | None = None
    location: str | None = None
    status: str | None = None
    notes: str | None = None


class DeviceUpdate(BaseModel):
    """
    Partial update command.
    部分更新命令。

    A field left out of the payload is untouched; a field explicitly set to
    null is cleared. `changes()` returns only the supplied fields.
    未提供的字段保持不变；显式设为 null 的字段会被清空。`changes()` 仅返回已提供的字段。
    """

    model_config = ConfigDict(extra="ignore")

    hostname: str | None = None
    ip_address: str | None = None
    device_type: str | None = None
    device_type_id: int | None = None
    manufacturer_id: int | None = None
    location: str | None = None
    status: str | None = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        """
        Return the explicitly supplied fields.
        返回显式提供的字段。

        Returns:
            dict[str, Any]: Field name -> supplied value (may be None).
            dict[str, Any]: 字段名 -> 提供的值（可能为 None）。
        """
        return self.model_dump(exclude_unset=True)


class DeviceFilter(BaseModel):
    """
    List filter; both fields optional.
    列表过滤条件；两个字段均可选。

    Attributes:
        search: Case-insensitive substring of hostname or ip_address.
        search: 主机名或 IP 的大小写不敏感子串。
        status: Exact status match.
        status: 状态精确匹配。
    """

    search: str | None = None
    status: str | None = None


class AssignRequest(BaseModel):
    user_id: int = Field(validation_alias=AliasChoices("user_id", "userId"))


class DeviceRead(BaseModel):
    """
    Device record denormalized with lookup names and assignee.
    附带字典名称与领用人信息的设备记录。
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    hostname: str
    ip_address: str
    device_type: str
    device_type_id: int | None = None
    manufacturer_id: int | None = None
    location: str | None = None
    status: str
    notes: str | None = None
    assigned_user_id: int | None = None
    assigned_at: datetime | None = None
    created_at: datetime
    device_type_name: str | None = None
    manufacturer_name: str | None = None
    assigned_to_name: str | None = None
    assigned_to_email: str | None = None


class DeviceFileRead(BaseModel):
    """Attachment metadata.
    附件元数据。
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: int
    filename: str
    storage_locator: str
    version: int
    content_type: str | None = None
    file_size: int | None = None
    uploaded_at: datetime


class HistoryEntryRead(BaseModel):
    """History ledger entry, with the actor's name/email when known.
    历史记录条目，已知时附带操作人姓名/邮箱。
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: int
    action: str
    actor_user_id: int | None = None
    details: dict[str, Any] | None = None
    created_at: datetime
    actor_name: str | None = None
    actor_email: str | None = None
