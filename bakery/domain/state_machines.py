"""Status enums and their allowed transitions.

All status changes go through `StateMachine.ensure_can_transition`; the
tables below are the single source of truth for legal moves.
"""
from enum import Enum
from typing import Mapping

from .errors import InvalidStateTransition


class OrderStatus(str, Enum):
    PAID = "paid"
    PREPPING = "prepping"
    READY = "ready"
    PICKED_UP = "picked_up"
    CANCELED = "canceled"


class InquiryStatus(str, Enum):
    NEW = "new"
    IN_REVIEW = "in_review"
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    READY_FOR_PICKUP = "ready_for_pickup"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CLOSED = "closed"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    EXPIRED = "expired"


ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset] = {
    OrderStatus.PAID: frozenset({OrderStatus.PREPPING, OrderStatus.CANCELED}),
    OrderStatus.PREPPING: frozenset({OrderStatus.READY, OrderStatus.CANCELED}),
    OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELED}),
    OrderStatus.PICKED_UP: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}

INQUIRY_TRANSITIONS: Mapping[InquiryStatus, frozenset] = {
    InquiryStatus.NEW: frozenset({InquiryStatus.IN_REVIEW, InquiryStatus.REJECTED, InquiryStatus.CLOSED}),
    InquiryStatus.IN_REVIEW: frozenset({InquiryStatus.QUOTED, InquiryStatus.REJECTED, InquiryStatus.CLOSED}),
    InquiryStatus.QUOTED: frozenset({InquiryStatus.ACCEPTED, InquiryStatus.REJECTED, InquiryStatus.CLOSED}),
    InquiryStatus.ACCEPTED: frozenset({InquiryStatus.IN_PROGRESS, InquiryStatus.REJECTED, InquiryStatus.CLOSED}),
    InquiryStatus.IN_PROGRESS: frozenset({InquiryStatus.READY_FOR_PICKUP, InquiryStatus.CLOSED}),
    InquiryStatus.READY_FOR_PICKUP: frozenset({InquiryStatus.COMPLETED, InquiryStatus.CLOSED}),
    InquiryStatus.COMPLETED: frozenset(),
    InquiryStatus.REJECTED: frozenset(),
    InquiryStatus.CLOSED: frozenset(),
}


class StateMachine:
    def __init__(self, resource: str, status_type: type, transitions: Mapping):
        self.resource = resource
        self.status_type = status_type
        self.transitions = transitions

    def allowed_targets(self, current) -> frozenset:
        return self.transitions.get(self.status_type(current), frozenset())

    def can_transition(self, current, target) -> bool:
        return self.status_type(target) in self.allowed_targets(current)

    def is_terminal(self, status) -> bool:
        return not self.allowed_targets(status)

    def ensure_can_transition(self, current, target) -> None:
        if not self.can_transition(current, target):
            raise InvalidStateTransition(
                self.resource,
                self.status_type(current).value,
                self.status_type(target).value,
            )


ORDER_STATE_MACHINE = StateMachine("order", OrderStatus, ORDER_TRANSITIONS)
INQUIRY_STATE_MACHINE = StateMachine("inquiry", InquiryStatus, INQUIRY_TRANSITIONS)
