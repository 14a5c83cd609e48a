# Import all models so SQLAlchemy metadata is populated for Alembic and create_all
from src.models.company import Company
from src.models.enums import (
    BidderType,
    BudgetRange,
    BuildingType,
    ContactPreference,
    EventStatus,
    MessageType,
    NotificationPriority,
    NotificationType,
    QuoteStatus,
    RequirementPriority,
    RequirementStatus,
    ServiceType,
    UserRole,
)
from src.models.event_outbox import EventOutbox
from src.models.message import Message
from src.models.notification import Notification
from src.models.processed_event import ProcessedEvent
from src.models.professional import Professional
from src.models.quote import Quote
from src.models.requirement import Requirement
from src.models.requirement_quote import RequirementQuote
from src.models.requirement_transition import RequirementTransition

__all__ = [
    "BidderType",
    "BudgetRange",
    "BuildingType",
    "Company",
    "ContactPreference",
    "EventOutbox",
    "EventStatus",
    "Message",
    "MessageType",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "ProcessedEvent",
    "Professional",
    "Quote",
    "QuoteStatus",
    "Requirement",
    "RequirementPriority",
    "RequirementQuote",
    "RequirementStatus",
    "RequirementTransition",
    "ServiceType",
    "UserRole",
]
