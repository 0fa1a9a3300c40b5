"""
Collaboration contract model.

One contract per escrowed collaboration order, generated after the payment
is confirmed. Each party records agreement once; when both timestamps are
set the row is final and further saves raise ContractLockedError.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from contracts.exceptions import ContractLockedError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Contract(UUIDPrimaryKeyMixin, BaseModel):
    """
    Collaboration agreement between buyer and seller.

    Fields:
        order: Collaboration order (one contract per order)
        buyer/seller: Parties, copied from the order
        price_cents: Agreed total, copied from the order
        terms: Agreement text
        buyer_agreed_at/seller_agreed_at: When each party agreed
        document_path: Storage path of the rendered document
    """

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="contract",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="contracts_as_buyer",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="contracts_as_seller",
    )

    price_cents = models.PositiveBigIntegerField()

    terms = models.TextField()

    buyer_agreed_at = models.DateTimeField(null=True, blank=True)

    seller_agreed_at = models.DateTimeField(null=True, blank=True)

    document_path = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Path of the rendered agreement in default storage",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Contract for order {self.order_id}"

    @property
    def is_locked(self) -> bool:
        return self.buyer_agreed_at is not None and self.seller_agreed_at is not None

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored = (
                Contract.objects.filter(pk=self.pk)
                .values_list("buyer_agreed_at", "seller_agreed_at")
                .first()
            )
            if stored and all(stored):
                raise ContractLockedError(
                    "Contract has been agreed by both parties and cannot be changed",
                    details={"contract_id": str(self.pk)},
                )
        super().save(*args, **kwargs)
