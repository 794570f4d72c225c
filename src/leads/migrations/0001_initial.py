import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Lead",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("floor", models.PositiveSmallIntegerField(db_index=True, verbose_name="floor")),
                ("customer_name", models.CharField(max_length=255, verbose_name="customer name")),
                ("customer_phone", models.CharField(max_length=30, verbose_name="customer phone")),
                ("customer_email", models.EmailField(blank=True, default="", max_length=254, verbose_name="customer email")),
                ("interest", models.CharField(blank=True, default="", max_length=255, verbose_name="interest")),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="amount",
                    ),
                ),
                (
                    "stage",
                    models.CharField(
                        choices=[
                            ("potential", "Potential"),
                            ("demo", "Demo"),
                            ("proposal", "Proposal"),
                            ("negotiation", "Negotiation"),
                            ("closed_won", "Closed won"),
                            ("closed_lost", "Closed lost"),
                        ],
                        db_index=True,
                        default="potential",
                        max_length=20,
                        verbose_name="stage",
                    ),
                ),
                ("notes", models.TextField(blank=True, default="", verbose_name="notes")),
                ("visited_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="visited at")),
                ("closed_at", models.DateTimeField(blank=True, null=True, verbose_name="closed at")),
                (
                    "assigned_to",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_leads",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="assigned to",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="leads",
                        to="catalog.product",
                        verbose_name="product",
                    ),
                ),
            ],
            options={
                "verbose_name": "lead",
                "verbose_name_plural": "leads",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["floor", "stage"], name="lead_floor_stage_idx"),
                    models.Index(fields=["floor", "created_at"], name="lead_floor_created_idx"),
                    models.Index(fields=["assigned_to", "stage"], name="lead_assignee_stage_idx"),
                ],
            },
        ),
    ]
