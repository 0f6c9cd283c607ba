"""Closed value sets and the claim transition table."""
import enum


class ClaimStatus(str, enum.Enum):
    PENDING = 'pending'
    AI_PROCESSING = 'ai_processing'
    HUMAN_REVIEW = 'human_review'
    AI_APPROVED = 'ai_approved'
    HUMAN_APPROVED = 'human_approved'
    REJECTED = 'rejected'


class VerdictKind(str, enum.Enum):
    TRUE = 'true'
    FALSE = 'false'
    MISLEADING = 'misleading'
    NEEDS_CONTEXT = 'needs_context'
    UNVERIFIABLE = 'unverifiable'


class Category(str, enum.Enum):
    POLITICS = 'politics'
    HEALTH = 'health'
    ECONOMY = 'economy'
    EDUCATION = 'education'
    TECHNOLOGY = 'technology'
    ENVIRONMENT = 'environment'
    OTHER = 'other'


class Priority(str, enum.Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class Role(str, enum.Enum):
    USER = 'user'
    FACT_CHECKER = 'fact_checker'
    ADMIN = 'admin'


class Responsibility(str, enum.Enum):
    AI = 'ai'
    ORG = 'org'


class ApprovalStatus(str, enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


CLAIM_TRANSITIONS = {
    ClaimStatus.PENDING: frozenset({
        ClaimStatus.AI_PROCESSING,
        ClaimStatus.HUMAN_REVIEW,
        ClaimStatus.HUMAN_APPROVED,
        ClaimStatus.REJECTED,
    }),
    ClaimStatus.AI_PROCESSING: frozenset({
        ClaimStatus.AI_APPROVED,
        ClaimStatus.HUMAN_REVIEW,
        ClaimStatus.HUMAN_APPROVED,
        ClaimStatus.REJECTED,
    }),
    ClaimStatus.HUMAN_REVIEW: frozenset({ClaimStatus.HUMAN_APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.AI_APPROVED: frozenset({ClaimStatus.HUMAN_APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.HUMAN_APPROVED: frozenset(),
    ClaimStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in CLAIM_TRANSITIONS.items() if not targets)

# Statuses shown on the fact-checker work queue (ai_approved has its own queue)
REVIEW_QUEUE_STATUSES = (
    ClaimStatus.PENDING,
    ClaimStatus.AI_PROCESSING,
    ClaimStatus.HUMAN_REVIEW,
)

PRIORITY_RANK = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


def sources_into(target):
    """Statuses from which `target` is reachable in one step."""
    return tuple(s for s, targets in CLAIM_TRANSITIONS.items() if target in targets)


def can_transition(current, target):
    return ClaimStatus(target) in CLAIM_TRANSITIONS[ClaimStatus(current)]


def parse_enum(enum_cls, value, field):
    """Coerce a raw value to enum_cls, raising ValidationError with the allowed values."""
    from factdesk.errors import ValidationError
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field}: {value!r} (expected one of: {allowed})")


def enum_column(enum_cls, name):
    """db.Enum persisting member values as a CHECK-constrained VARCHAR."""
    from factdesk.extensions import db
    return db.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )
