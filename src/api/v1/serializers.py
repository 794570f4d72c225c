"""Serializers for the sales pipeline API v1.

Writes are parsed here and handed to ``leads.services`` / ``reports.services``;
business rules live in those services, not in the serializers.
"""
from rest_framework import serializers

from leads import stages
from leads.models import Lead
from reports.models import SalesReport


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

class LeadSerializer(serializers.ModelSerializer):
    """Read representation of a lead."""

    product_name = serializers.SerializerMethodField()
    assigned_to_name = serializers.SerializerMethodField()
    stage_label = serializers.CharField(source="get_stage_display", read_only=True)
    next_stage = serializers.SerializerMethodField()
    allowed_stages = serializers.SerializerMethodField()
    last_updated = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Lead
        fields = [
            "id",
            "floor",
            "customer_name",
            "customer_phone",
            "customer_email",
            "product",
            "product_name",
            "interest",
            "amount",
            "stage",
            "stage_label",
            "next_stage",
            "allowed_stages",
            "assigned_to",
            "assigned_to_name",
            "notes",
            "visited_at",
            "closed_at",
            "created_at",
            "last_updated",
        ]
        read_only_fields = fields

    def get_product_name(self, obj):
        return obj.product.name if obj.product_id else None

    def get_assigned_to_name(self, obj):
        if obj.assigned_to_id:
            return obj.assigned_to.get_full_name() or obj.assigned_to.email
        return None

    def get_next_stage(self, obj):
        return stages.next_stage(obj.stage)

    def get_allowed_stages(self, obj):
        return stages.allowed_targets(obj.stage)


class LeadCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=255, allow_blank=True, required=False, default="")
    customer_phone = serializers.CharField(max_length=30, allow_blank=True, required=False, default="")
    customer_email = serializers.EmailField(allow_blank=True, required=False, default="")
    product = serializers.UUIDField(required=False, allow_null=True, default=None)
    interest = serializers.CharField(max_length=255, allow_blank=True, required=False, default="")
    amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, default=None,
    )
    notes = serializers.CharField(allow_blank=True, required=False, default="")
    visited_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class LeadUpdateSerializer(serializers.Serializer):
    """Every field optional; only the ones sent are changed."""

    customer_name = serializers.CharField(max_length=255, allow_blank=True, required=False)
    customer_phone = serializers.CharField(max_length=30, allow_blank=True, required=False)
    customer_email = serializers.EmailField(allow_blank=True, required=False)
    product = serializers.UUIDField(required=False, allow_null=True)
    interest = serializers.CharField(max_length=255, allow_blank=True, required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    notes = serializers.CharField(allow_blank=True, required=False)
    visited_at = serializers.DateTimeField(required=False)


class LeadTransitionSerializer(serializers.Serializer):
    # Plain string: unknown stage names are refused by the stage table.
    stage = serializers.CharField(max_length=40)


class LeadAssignSerializer(serializers.Serializer):
    salesperson_id = serializers.CharField(max_length=64)


class ChangesQuerySerializer(serializers.Serializer):
    since = serializers.IntegerField(required=False, min_value=0)


class SalespersonSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    role = serializers.CharField()
    floor = serializers.IntegerField(allow_null=True)
    active_lead_count = serializers.IntegerField(allow_null=True)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class SalesReportSerializer(serializers.ModelSerializer):
    submitted_by_name = serializers.SerializerMethodField()

    class Meta:
        model = SalesReport
        fields = [
            "id",
            "floor",
            "period",
            "start_date",
            "end_date",
            "notes",
            "submitted_by",
            "submitted_by_name",
            "summary",
            "report_data",
            "created_at",
        ]
        read_only_fields = fields

    def get_submitted_by_name(self, obj):
        if obj.submitted_by:
            return obj.submitted_by.get_full_name() or obj.submitted_by.email
        return None


class SalesReportListSerializer(SalesReportSerializer):
    """List rows leave out the per-lead snapshot."""

    class Meta(SalesReportSerializer.Meta):
        fields = [f for f in SalesReportSerializer.Meta.fields if f != "report_data"]
        read_only_fields = fields


class ReportGenerateSerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=SalesReport.Period.choices)
    notes = serializers.CharField(allow_blank=True, required=False, default="")
    run_async = serializers.BooleanField(required=False, default=False)
