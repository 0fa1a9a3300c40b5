"""
Dispute model.

A buyer or seller raises a dispute on a delivered order; the order moves to
disputed in the same transaction. An admin settles it with one of the
DisputeResolution outcomes through disputes.services.DisputeResolver.

Dispute.status is a protected django-fsm field changed only through the
transition methods below.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from disputes.states import (
    ACTIVE_STATUSES,
    DisputeReason,
    DisputeResolution,
    DisputeStatus,
)


class Dispute(UUIDPrimaryKeyMixin, BaseModel):
    """
    A disagreement about a delivered order.

    Fields:
        order: Disputed order
        raised_by: Buyer or seller who opened it
        reason: DisputeReason
        description: Reporter's account (10 to 5000 characters)
        evidence_urls: Links to supporting files
        responses: Counter-party responses ({user_id, message, created_at})
        status: open | under_review | resolved | closed
        resolution: Admin decision, set when resolved
        refund_amount_cents: Buyer refund for partial_refund
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="disputes",
    )

    raised_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="disputes_raised",
    )

    reason = models.CharField(max_length=30, choices=DisputeReason.choices)

    description = models.TextField()

    evidence_urls = models.JSONField(default=list, blank=True)

    responses = models.JSONField(
        default=list,
        blank=True,
        help_text="Responses from the other party",
    )

    status = FSMField(
        default=DisputeStatus.OPEN,
        choices=DisputeStatus.choices,
        db_index=True,
        protected=True,
    )

    # ==========================================================================
    # Resolution
    # ==========================================================================

    resolution = models.CharField(
        max_length=20,
        choices=DisputeResolution.choices,
        blank=True,
        default="",
    )

    refund_amount_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount returned to the buyer by a partial refund, in cents",
    )

    admin_notes = models.TextField(blank=True, default="")

    resolved_at = models.DateTimeField(null=True, blank=True)

    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="disputes_resolved",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status__in=[DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW]),
                name="one_active_dispute_per_order",
            ),
        ]

    def __str__(self) -> str:
        return f"Dispute {self.id} ({self.status}) on order {self.order_id}"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    # ==========================================================================
    # State Transitions
    # ==========================================================================

    @transition(field=status, source=DisputeStatus.OPEN, target=DisputeStatus.UNDER_REVIEW)
    def start_review(self):
        pass

    @transition(field=status, source=list(ACTIVE_STATUSES), target=DisputeStatus.RESOLVED)
    def resolve(self, resolution: str, admin, admin_notes: str = "", refund_amount_cents=None):
        self.resolution = resolution
        self.resolved_by = admin
        self.admin_notes = admin_notes
        self.refund_amount_cents = refund_amount_cents
        self.resolved_at = timezone.now()

    @transition(field=status, source=list(ACTIVE_STATUSES), target=DisputeStatus.CLOSED)
    def close(self, admin_notes: str = ""):
        """Archive a dispute whose order was settled outside resolution."""
        self.admin_notes = admin_notes
        self.resolved_at = timezone.now()
