"""
Accounts models.

- User: email-identified marketplace user (buyer, seller or admin)

Related files:
    - managers.py: UserManager for email-based creation
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from accounts.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Marketplace user identified by email.

    The same account can buy and sell; roles are per order (buyer_id /
    seller_id). ``is_staff`` grants admin actions such as escrow release and
    dispute resolution.

    Fields:
        email: Primary identifier, unique, used for login
        display_name: Name shown to the other party and printed on contracts
        is_active: Whether the account is active
        is_staff: Whether the user is a marketplace admin
        date_joined: When the account was created
    """

    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    display_name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Public name shown on orders and contracts",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user is a marketplace admin.",
    )
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.display_name or self.email

    def get_short_name(self):
        return self.display_name or self.email.split("@")[0]
