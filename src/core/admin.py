"""Admin registration for the audit trail."""
from django.contrib import admin

from core.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "actor", "floor", "action", "entity_type", "entity_id")
    list_filter = ("action", "entity_type", "floor")
    search_fields = (
        "entity_id",
        "actor__email",
        "actor__first_name",
        "actor__last_name",
        "action",
    )
    readonly_fields = (
        "actor",
        "floor",
        "action",
        "entity_type",
        "entity_id",
        "before_json",
        "after_json",
        "created_at",
    )
    list_select_related = ("actor",)
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
