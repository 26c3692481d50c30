from __future__ import annotations

import enum


class UserRole(enum.StrEnum):
    """Role granted to an application user."""

    USER = "USER"
    ADMIN = "ADMIN"


class ContractType(enum.StrEnum):
    """Kind of employment contract.

    TERMINATED is a contract *type* and is unrelated to ContractStatus.TERMINATED.
    """

    CDD = "CDD"
    CDI = "CDI"
    INTERNSHIP = "Internship"
    TERMINATED = "Terminated"


class ContractStatus(enum.StrEnum):
    """Lifecycle status of a contract, cached from its dates by reconciliation."""

    ACTIVE = "Active"
    EXPIRING_SOON = "Expiring Soon"
    EXPIRED = "Expired"
    TERMINATED = "Terminated"
    PENDING = "Pending"


class RequestType(enum.StrEnum):
    """What an employee asks for on a contract."""

    RENEWAL = "renewal"
    TERMINATION = "termination"
    STATUS_CHANGE = "status_change"


class RequestStatus(enum.StrEnum):
    """State machine for contract requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestAction(enum.StrEnum):
    """Admin decision on a pending request."""

    APPROVE = "approve"
    REJECT = "reject"


class ReminderFrequency(enum.StrEnum):
    """How often dashboards re-check for expiring contracts."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    COMPANY = "COMPANY"
    CONTRACT = "CONTRACT"
    REQUEST = "REQUEST"
    USER = "USER"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
