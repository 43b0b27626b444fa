from enum import Enum


class PurchaseStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


# verification is one-way: only a pending payment can be settled
PAYMENT_TRANSITIONS = {
    "pending": ["completed", "failed", "refunded"],
    "completed": [],
    "failed": [],
    "refunded": [],
}
