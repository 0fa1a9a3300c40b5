"""
Service listing model.

Only the fields the order engine relies on are modelled here: seller,
price, type and delivery window, plus the sale counter that confirmed
purchases increment.
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

# 999,999.00 in cents
MAX_PRICE_CENTS = 99_999_900


class ServiceType(models.TextChoices):
    """
    Kinds of listings.

    COLLABORATION is the only type delivered over time; its payment is held in
    escrow (manual capture) until the buyer approves delivery. Every other type
    is an instant digital product, captured and completed at purchase.
    """

    COLLABORATION = "collaboration", "Collaboration"
    SUBSCRIPTION = "subscription", "Subscription"
    LOOP_PACK = "loop_pack", "Loop Pack"
    DRUM_KIT = "drum_kit", "Drum Kit"
    PRESET_KIT = "preset_kit", "Preset Kit"


ESCROW_SERVICE_TYPES = frozenset({ServiceType.COLLABORATION})


class Service(UUIDPrimaryKeyMixin, BaseModel):
    """
    A purchasable listing offered by a seller.

    Fields:
        seller: User offering the service
        title: Listing title (used in the payment description)
        service_type: ServiceType value
        price_cents: Price in cents, 1 to 99,999,900
        delivery_time_days: Delivery window for collaborations
        is_active: Whether the listing can be bought
        total_sales: Confirmed purchases
    """

    # ==========================================================================
    # Ownership & Description
    # ==========================================================================

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="services",
        help_text="User offering this service",
    )

    title = models.CharField(
        max_length=200,
        help_text="Listing title",
    )

    description = models.TextField(
        blank=True,
        default="",
        help_text="Listing description",
    )

    service_type = models.CharField(
        max_length=20,
        choices=ServiceType.choices,
        help_text="Kind of listing; collaborations are paid into escrow",
    )

    # ==========================================================================
    # Commercial Terms
    # ==========================================================================

    price_cents = models.PositiveIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(MAX_PRICE_CENTS)],
        help_text="Price in cents (max 999,999.00)",
    )

    delivery_time_days = models.PositiveSmallIntegerField(
        default=14,
        help_text="Days the seller has to deliver a collaboration",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether the listing can currently be purchased",
    )

    total_sales = models.PositiveIntegerField(
        default=0,
        help_text="Number of confirmed purchases",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller", "is_active"], name="catalog_svc_seller_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_cents__gt=0)
                & models.Q(price_cents__lte=MAX_PRICE_CENTS),
                name="service_price_in_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Service({self.title}, {self.service_type}, {self.price_cents / 100:.2f})"

    @property
    def requires_escrow(self) -> bool:
        return self.service_type in ESCROW_SERVICE_TYPES
