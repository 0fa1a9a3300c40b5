"""
Core abstract models shared by every domain app.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)
    AppendOnlyModel: Abstract model whose rows can be inserted but never updated

For UUIDPrimaryKeyMixin see core.model_mixins.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Order(UUIDPrimaryKeyMixin, BaseModel):
        ...

Note:
    Always list mixins before BaseModel in inheritance.
"""

from __future__ import annotations

from django.db import models

from core.exceptions import InvariantViolationError


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Set when the object is first created
        updated_at: Updated whenever the object is saved
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"


class AppendOnlyModel(models.Model):
    """
    Abstract model for audit and ledger rows.

    Rows are written once. Saving an instance that already exists in the
    database, or deleting one, raises InvariantViolationError.

    Fields:
        created_at: Set when the row is inserted
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was written",
    )

    class Meta:
        abstract = True
        ordering = ["created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvariantViolationError(
                f"{self.__class__.__name__} rows are immutable",
                error_code="IMMUTABLE_RECORD",
                details={"pk": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvariantViolationError(
            f"{self.__class__.__name__} rows cannot be deleted",
            error_code="IMMUTABLE_RECORD",
            details={"pk": str(self.pk)},
        )
