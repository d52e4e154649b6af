from enum import Enum

# Stored as strings (native enums disabled for easier evolution).


class ClientStatusEnum(str, Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class InvoiceStatusEnum(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    VOIDED = "voided"
    CANCELLED = "cancelled"
