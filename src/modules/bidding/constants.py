"""Requirement/quote state machines, event types, and budget buckets."""

from __future__ import annotations

from decimal import Decimal

from src.models.enums import BudgetRange, QuoteStatus, RequirementPriority, RequirementStatus

# Every transition the requirement state machine allows: from_status -> {to_status}
VALID_TRANSITIONS: dict[RequirementStatus, set[RequirementStatus]] = {
    RequirementStatus.OPEN: {
        RequirementStatus.REVIEWING_QUOTES,
        RequirementStatus.CANCELLED,
    },
    RequirementStatus.REVIEWING_QUOTES: {
        RequirementStatus.COMPANY_SELECTED,
        RequirementStatus.CANCELLED,
    },
    RequirementStatus.COMPANY_SELECTED: {
        RequirementStatus.IN_PROGRESS,
        RequirementStatus.CANCELLED,
    },
    RequirementStatus.IN_PROGRESS: {
        RequirementStatus.COMPLETED,
        RequirementStatus.CANCELLED,
    },
}

# Subset reachable through the explicit status-update operation. The others
# belong to submission (open -> reviewing_quotes) and selection.
MANUAL_TRANSITIONS: dict[RequirementStatus, set[RequirementStatus]] = {
    RequirementStatus.OPEN: {RequirementStatus.CANCELLED},
    RequirementStatus.REVIEWING_QUOTES: {RequirementStatus.CANCELLED},
    RequirementStatus.COMPANY_SELECTED: {
        RequirementStatus.IN_PROGRESS,
        RequirementStatus.CANCELLED,
    },
    RequirementStatus.IN_PROGRESS: {
        RequirementStatus.COMPLETED,
        RequirementStatus.CANCELLED,
    },
}

# Statuses where quotes can be submitted
BIDDABLE_STATUSES: set[RequirementStatus] = {
    RequirementStatus.OPEN,
    RequirementStatus.REVIEWING_QUOTES,
}

# Statuses reached once a quote has been selected
SELECTED_STATUSES: set[RequirementStatus] = {
    RequirementStatus.COMPANY_SELECTED,
    RequirementStatus.IN_PROGRESS,
    RequirementStatus.COMPLETED,
}

# Terminal statuses (no further transitions possible)
TERMINAL_STATUSES: set[RequirementStatus] = {
    RequirementStatus.COMPLETED,
    RequirementStatus.CANCELLED,
}

# Quote statuses that may win a selection
SELECTABLE_QUOTE_STATUSES: set[QuoteStatus] = {
    QuoteStatus.SUBMITTED,
    QuoteStatus.UNDER_REVIEW,
}

# Quote statuses where the owner may still edit the proposal
EDITABLE_QUOTE_STATUSES: set[QuoteStatus] = {
    QuoteStatus.DRAFT,
    QuoteStatus.SUBMITTED,
}

# Quotes still competing for a requirement
LIVE_QUOTE_STATUSES: set[QuoteStatus] = {
    QuoteStatus.SUBMITTED,
    QuoteStatus.UNDER_REVIEW,
}

PRIORITY_RANK: dict[RequirementPriority, int] = {
    RequirementPriority.URGENT: 4,
    RequirementPriority.HIGH: 3,
    RequirementPriority.MEDIUM: 2,
    RequirementPriority.LOW: 1,
}

# Event type strings for the outbox
EVENT_REQUIREMENT_CREATED = "requirement.created"
EVENT_REQUIREMENT_STATUS_CHANGED = "requirement.status_changed"
EVENT_REQUIREMENT_CANCELLED = "requirement.cancelled"
EVENT_QUOTE_SUBMITTED = "quote.submitted"
EVENT_QUOTE_UPDATED = "quote.updated"
EVENT_QUOTE_WITHDRAWN = "quote.withdrawn"
EVENT_QUOTE_SELECTED = "quote.selected"

# Upper bound (inclusive unless noted) of each budget bucket, in rupees
_BUDGET_BUCKETS: list[tuple[Decimal, BudgetRange]] = [
    (Decimal("2500000"), BudgetRange.FROM_10L_TO_25L),
    (Decimal("5000000"), BudgetRange.FROM_25L_TO_50L),
    (Decimal("10000000"), BudgetRange.FROM_50L_TO_1CR),
    (Decimal("20000000"), BudgetRange.FROM_1CR_TO_2CR),
]
_UNDER_10L_LIMIT = Decimal("1000000")  # exclusive


def derive_budget_range(budget: Decimal | int | float | None) -> BudgetRange | None:
    """Bucket a budget into its display range. Zero or missing budgets get none."""
    if budget is None:
        return None
    amount = Decimal(str(budget))
    if amount <= 0:
        return None
    if amount < _UNDER_10L_LIMIT:
        return BudgetRange.UNDER_10L
    for upper, bucket in _BUDGET_BUCKETS:
        if amount <= upper:
            return bucket
    return BudgetRange.ABOVE_2CR
