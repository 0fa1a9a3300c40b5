import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

import orders.models

ORDER_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("awaiting_upload", "Awaiting Upload"),
    ("in_progress", "In Progress"),
    ("awaiting_delivery", "Awaiting Delivery"),
    ("delivered", "Delivered"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
    ("refunded", "Refunded"),
    ("disputed", "Disputed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("version", models.PositiveIntegerField(default=1, help_text="Version for optimistic locking - incremented on each save")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "order_number",
                    models.CharField(
                        default=orders.models.generate_order_number,
                        editable=False,
                        help_text="External order number (ORD-<ms>-<random>)",
                        max_length=40,
                        unique=True,
                    ),
                ),
                ("amount_cents", models.PositiveBigIntegerField(help_text="Total charged, in cents")),
                ("platform_fee_cents", models.PositiveBigIntegerField(help_text="Platform fee, in cents")),
                ("seller_amount_cents", models.PositiveBigIntegerField(help_text="Seller share, in cents")),
                ("currency", models.CharField(default="usd", help_text="ISO 4217 currency code (lowercase)", max_length=3)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=ORDER_STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        help_text="Current order status (managed by OrderStateMachine)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "escrow_status",
                    models.CharField(
                        choices=[("none", "None"), ("held", "Held"), ("released", "Released"), ("refunded", "Refunded")],
                        default="none",
                        help_text="Escrow state of the payment",
                        max_length=10,
                    ),
                ),
                (
                    "external_payment_reference",
                    models.CharField(
                        help_text="Stripe PaymentIntent ID (pi_xxx); idempotency key for order creation",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("buyer_files", models.JSONField(blank=True, default=dict, help_text="Files and instructions uploaded by the buyer")),
                ("seller_files", models.JSONField(blank=True, default=dict, help_text="Files and notes delivered by the seller")),
                ("delivery_deadline", models.DateTimeField(blank=True, help_text="When the seller must deliver a collaboration", null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "buyer",
                    models.ForeignKey(
                        help_text="User who bought the service",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        help_text="User who sells the service",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        help_text="Purchased service",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="catalog.service",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["buyer", "status"], name="orders_buyer_status_idx"),
                    models.Index(fields=["seller", "status"], name="orders_seller_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("amount_cents", models.F("platform_fee_cents") + models.F("seller_amount_cents"))
                        ),
                        name="order_amount_split_matches",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount_cents__gt", 0)),
                        name="order_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was written")),
                ("from_status", models.CharField(blank=True, choices=ORDER_STATUS_CHOICES, max_length=20, null=True)),
                ("to_status", models.CharField(choices=ORDER_STATUS_CHOICES, max_length=20)),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("client", "Client"),
                            ("webhook", "Webhook"),
                            ("admin", "Admin"),
                            ("system", "System"),
                            ("provider", "Provider"),
                        ],
                        default="system",
                        max_length=10,
                    ),
                ),
                ("reason", models.CharField(blank=True, default="", max_length=500)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who caused the change (null for webhooks and system jobs)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="status_history",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order Status History",
                "verbose_name_plural": "Order Status History",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["order", "created_at"], name="orders_history_order_idx")],
            },
        ),
    ]
