"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class ServiceType(str, Enum):
    GST_FILING = "GST_FILING"
    INCOME_TAX_RETURN = "INCOME_TAX_RETURN"
    AUDIT = "AUDIT"
    ACCOUNTING = "ACCOUNTING"
    TAX_PLANNING = "TAX_PLANNING"
    FINANCIAL_CONSULTING = "FINANCIAL_CONSULTING"
    COMPANY_REGISTRATION = "COMPANY_REGISTRATION"
    OTHER = "OTHER"


class ServiceRequestStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class FirmRole(str, Enum):
    FIRM_ADMIN = "FIRM_ADMIN"
    SENIOR_CA = "SENIOR_CA"
    JUNIOR_CA = "JUNIOR_CA"
    CONSULTANT = "CONSULTANT"


class AssignmentMethod(str, Enum):
    """How a committed assignment was made (persisted on the request)."""

    AUTO = "AUTO"
    MANUAL = "MANUAL"


class AssignmentOutcome(str, Enum):
    """What an orchestrator call produced."""

    AUTO = "AUTO"
    MANUAL_REQUIRED = "MANUAL_REQUIRED"
    MANUAL = "MANUAL"


class AssignmentState(str, Enum):
    UNASSIGNED = "UNASSIGNED"
    MANUAL_PENDING = "MANUAL_PENDING"
    ASSIGNED_AUTO = "ASSIGNED_AUTO"
    ASSIGNED_MANUAL = "ASSIGNED_MANUAL"


class AssignmentEventKind(str, Enum):
    ASSIGNED = "ASSIGNED"
    MANUAL_REQUIRED = "MANUAL_REQUIRED"


class StatsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
