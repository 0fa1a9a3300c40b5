"""
Dispute enums.

Dispute States:
    open → under_review → resolved
    open → resolved
    open | under_review → closed

Only OPEN and UNDER_REVIEW count as active; an order has at most one
active dispute. CLOSED archives a dispute whose order was refunded by the
payment provider.
"""

from django.db import models


class DisputeStatus(models.TextChoices):
    OPEN = "open", "Open"
    UNDER_REVIEW = "under_review", "Under Review"
    RESOLVED = "resolved", "Resolved"
    CLOSED = "closed", "Closed"


class DisputeReason(models.TextChoices):
    NOT_DELIVERED = "not_delivered", "Not Delivered"
    WRONG_FILES = "wrong_files", "Wrong Files"
    QUALITY_ISSUE = "quality_issue", "Quality Issue"
    COMMUNICATION_ISSUE = "communication_issue", "Communication Issue"
    OTHER = "other", "Other"


class DisputeResolution(models.TextChoices):
    """How an admin settles the disputed funds."""

    REFUND_BUYER = "refund_buyer", "Refund Buyer"
    RELEASE_TO_SELLER = "release_to_seller", "Release To Seller"
    PARTIAL_REFUND = "partial_refund", "Partial Refund"


ACTIVE_STATUSES = frozenset({DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW})

DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 5000
MAX_EVIDENCE_URLS = 20
