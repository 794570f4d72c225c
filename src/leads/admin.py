"""Admin configuration for the leads app."""
from django.contrib import admin

from .models import Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = (
        "customer_name",
        "customer_phone",
        "floor",
        "stage",
        "product",
        "amount",
        "assigned_to",
        "created_at",
    )
    list_filter = ("floor", "stage")
    search_fields = ("customer_name", "customer_phone", "customer_email", "interest")
    # Stage and assignee only change through leads.services.
    readonly_fields = ("id", "stage", "assigned_to", "closed_at", "created_at", "updated_at")
    list_select_related = ("product", "assigned_to")
    date_hierarchy = "created_at"

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        if obj is not None:
            return (*fields, "floor")
        return fields
