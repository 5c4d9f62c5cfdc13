"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exceptions.py
@DateTime: 2026-10-17
@Docs: Device inventory error hierarchy.
设备台账异常体系。
"""

from typing import Any


class InventoryError(Exception):
    """
    Inventory errors.
    设备台账异常。

    Errors raised by the record-keeping core. Subclasses only change the
    default status code and error code.
    记录核心抛出的异常。子类仅改变默认状态码与错误码。

    Attributes:
        message: Error message.
        message: 错误消息。
        status_code: HTTP status code.
        status_code: HTTP 状态码。
        details: Error details.
        details: 错误详情。
        error_code: Stable error code.
        error_code: 稳定错误码。
    """

    default_status_code: int = 400
    default_error_code: str = "inventory_error"

    def __init__(
        self,
        *,
        message: str,
        status_code: int | None = None,
        details: Any | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.details = details
        self.error_code = error_code or self.default_error_code


class ValidationError(InventoryError):
    """
    Validation error, raised before any mutation.
    校验错误，在任何修改之前抛出。

    Attributes:
        field: Name of the violated field (optional).
        field: 违反约束的字段名（可选）。
    """

    default_status_code = 422
    default_error_code = "validation_error"

    def __init__(
        self,
        *,
        message: str,
        field: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, details=details, error_code=error_code)
        self.field = field


class NotFoundError(InventoryError):
    """
    Not-found error (device, file, lookup id).
    资源不存在（设备、文件、字典 ID）。
    """

    default_status_code = 404
    default_error_code = "not_found"

    def __init__(
        self,
        *,
        message: str,
        resource: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, details=details, error_code=error_code)
        self.resource = resource


class ConflictError(InventoryError):
    """
    Conflict error (duplicate hostname, duplicate lookup name).
    冲突错误（主机名重复、字典名称重复）。
    """

    default_status_code = 409
    default_error_code = "conflict"

    def __init__(
        self,
        *,
        message: str,
        field: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, details=details, error_code=error_code)
        self.field = field


class VersionConflictError(ConflictError):
    """
    Attachment version slot still colliding after the retry bound.
    附件版本号在重试上限后仍然冲突。
    """

    default_status_code = 503
    default_error_code = "version_conflict"


class AuthorizationError(InventoryError):
    """
    Anonymous or inactive principal attempting a gated operation.
    匿名或已停用的主体尝试执行受限操作。
    """

    default_status_code = 401
    default_error_code = "unauthorized"


class UpstreamError(InventoryError):
    """
    Datastore or blob sink failure; transient, not retried by the core.
    数据库或文件存储故障；属于瞬时错误，核心不自动重试。
    """

    default_status_code = 503
    default_error_code = "upstream_failure"
