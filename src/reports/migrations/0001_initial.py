import uuid

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
            name="SalesReport",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("floor", models.PositiveSmallIntegerField(db_index=True, verbose_name="floor")),
                (
                    "period",
                    models.CharField(
                        choices=[("today", "Today"), ("week", "This week"), ("month", "This month")],
                        max_length=10,
                        verbose_name="period",
                    ),
                ),
                ("start_date", models.DateTimeField(verbose_name="start")),
                ("end_date", models.DateTimeField(verbose_name="end")),
                ("notes", models.TextField(blank=True, default="", verbose_name="notes")),
                ("report_data", models.JSONField(blank=True, default=list, verbose_name="report data")),
                ("summary", models.JSONField(blank=True, default=dict, verbose_name="summary")),
                (
                    "submitted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="submitted_reports",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="submitted by",
                    ),
                ),
            ],
            options={
                "verbose_name": "sales report",
                "verbose_name_plural": "sales reports",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["floor", "created_at"], name="report_floor_created_idx"),
                ],
            },
        ),
    ]
