from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q

from leads.stages import TERMINAL_STAGES

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Team members, their role and the floor they work on."""

    list_display = (
        "email",
        "get_full_name",
        "role",
        "floor",
        "open_leads",
        "is_active",
        "date_joined",
    )
    list_filter = ("role", "floor", "is_active", "is_staff")
    search_fields = ("email", "first_name", "last_name", "phone")
    ordering = ("floor", "first_name")
    actions = ("activate_users", "deactivate_users")
    readonly_fields = ("date_joined", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "phone")}),
        ("Sales floor", {"fields": ("role", "floor")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "first_name", "last_name", "role", "floor", "password1", "password2"),
            },
        ),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _open_leads=Count("assigned_leads", filter=~Q(assigned_leads__stage__in=TERMINAL_STAGES)),
        )

    @admin.display(description="Open leads", ordering="_open_leads")
    def open_leads(self, obj):
        return obj._open_leads

    @admin.action(description="Activate selected users")
    def activate_users(self, request, queryset):
        queryset.update(is_active=True)

    @admin.action(description="Deactivate selected users")
    def deactivate_users(self, request, queryset):
        queryset.update(is_active=False)
