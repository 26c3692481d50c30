from sqlmodel import SQLModel

from contracthub.models.audit import AuditLog
from contracthub.models.base import TimestampMixin, UUIDBase
from contracthub.models.company import Company
from contracthub.models.contract import Contract
from contracthub.models.enums import (
    AuditAction,
    AuditEntityType,
    ContractStatus,
    ContractType,
    ReminderFrequency,
    RequestAction,
    RequestStatus,
    RequestType,
    UserRole,
)
from contracthub.models.request import ContractRequest
from contracthub.models.user import AuthToken, User

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "AuthToken",
    "Company",
    "Contract",
    "ContractRequest",
    "ContractStatus",
    "ContractType",
    "ReminderFrequency",
    "RequestAction",
    "RequestStatus",
    "RequestType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "User",
    "UserRole",
]
