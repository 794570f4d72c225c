"""Admin configuration for the reports app."""
from django.contrib import admin

from reports.models import SalesReport


@admin.register(SalesReport)
class SalesReportAdmin(admin.ModelAdmin):
    """Read-only admin: reports are generated, never edited."""

    list_display = (
        "floor",
        "period",
        "start_date",
        "end_date",
        "submitted_by",
        "created_at",
    )
    list_filter = ("floor", "period")
    search_fields = ("notes", "submitted_by__email")
    list_select_related = ("submitted_by",)
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
