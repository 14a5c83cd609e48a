import enum

# Values are the persisted wire literals; listing and analytics layers depend
# on them, so renaming one is a breaking change.


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UserRole(str, enum.Enum):
    HOMEOWNER = "homeowner"
    COMPANY_ADMIN = "company_admin"
    PROFESSIONAL = "professional"
    ADMIN = "admin"


# ── Requirements ─────────────────────────────────────────────────────────


class RequirementStatus(str, enum.Enum):
    OPEN = "open"
    REVIEWING_QUOTES = "reviewing_quotes"
    COMPANY_SELECTED = "company_selected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceType(str, enum.Enum):
    INTERIOR_DESIGN = "interior-design"
    CONSTRUCTION = "construction"
    RENOVATION = "renovation"
    ARCHITECTURE = "architecture"
    GENERAL = "general"


class BuildingType(str, enum.Enum):
    APARTMENT = "Apartment"
    VILLA = "Villa"
    DUPLEX = "Duplex"
    TRIPLEX = "Triplex"
    BUNGALOW = "Bungalow"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    INSTITUTIONAL = "Institutional"


class BudgetRange(str, enum.Enum):
    UNDER_10L = "Under ₹10L"
    FROM_10L_TO_25L = "₹10L - ₹25L"
    FROM_25L_TO_50L = "₹25L - ₹50L"
    FROM_50L_TO_1CR = "₹50L - ₹1Cr"
    FROM_1CR_TO_2CR = "₹1Cr - ₹2Cr"
    ABOVE_2CR = "Above ₹2Cr"


class RequirementPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContactPreference(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    WHATSAPP = "whatsapp"
    CHAT = "chat"


# ── Quotes ───────────────────────────────────────────────────────────────


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class BidderType(str, enum.Enum):
    COMPANY = "company"
    PROFESSIONAL = "professional"


# ── Notifications ────────────────────────────────────────────────────────


class NotificationType(str, enum.Enum):
    QUOTE_SUBMITTED = "quote_submitted"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_REJECTED = "quote_rejected"
    QUOTE_WITHDRAWN = "quote_withdrawn"
    REQUIREMENT_CANCELLED = "requirement_cancelled"
    REQUIREMENT_STATUS_CHANGED = "requirement_status_changed"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Messaging ────────────────────────────────────────────────────────────


class MessageType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
