import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Service",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
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
                ("title", models.CharField(help_text="Listing title", max_length=200)),
                ("description", models.TextField(blank=True, default="", help_text="Listing description")),
                (
                    "service_type",
                    models.CharField(
                        choices=[
                            ("collaboration", "Collaboration"),
                            ("subscription", "Subscription"),
                            ("loop_pack", "Loop Pack"),
                            ("drum_kit", "Drum Kit"),
                            ("preset_kit", "Preset Kit"),
                        ],
                        help_text="Kind of listing; collaborations are paid into escrow",
                        max_length=20,
                    ),
                ),
                (
                    "price_cents",
                    models.PositiveIntegerField(
                        help_text="Price in cents (max 999,999.00)",
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(99999900),
                        ],
                    ),
                ),
                ("delivery_time_days", models.PositiveSmallIntegerField(default=14, help_text="Days the seller has to deliver a collaboration")),
                ("is_active", models.BooleanField(default=True, help_text="Whether the listing can currently be purchased")),
                ("total_sales", models.PositiveIntegerField(default=0, help_text="Number of confirmed purchases")),
                (
                    "seller",
                    models.ForeignKey(
                        help_text="User offering this service",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="services",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["seller", "is_active"], name="catalog_svc_seller_active_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price_cents__gt", 0), ("price_cents__lte", 99999900)),
                        name="service_price_in_range",
                    )
                ],
            },
        ),
    ]
