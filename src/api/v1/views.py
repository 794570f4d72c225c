"""API v1 views for leads, salespeople and sales reports."""
import logging

from django.utils.cache import add_never_cache_headers
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.filters import LeadFilter
from api.v1.pagination import StandardResultsSetPagination
from api.v1.permissions import CanWorkLeads, IsAdmin, IsManagerOrAdmin, resolve_floor
from api.v1.serializers import (
    ChangesQuerySerializer,
    LeadAssignSerializer,
    LeadCreateSerializer,
    LeadSerializer,
    LeadTransitionSerializer,
    LeadUpdateSerializer,
    ReportGenerateSerializer,
    SalespersonSerializer,
    SalesReportListSerializer,
    SalesReportSerializer,
)
from leads import notifications, services
from leads.dashboard import compute_dashboard
from reports import services as report_services
from reports.tasks import generate_floor_report

logger = logging.getLogger("jewellery")


def _no_store(response):
    add_never_cache_headers(response)
    return response


def _changes_response(request, topic):
    query = ChangesQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return _no_store(Response(notifications.changes(topic, query.validated_data.get("since"))))


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

class LeadViewSet(
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """Lead store and pipeline actions, scoped to the caller's floor."""

    serializer_class = LeadSerializer
    pagination_class = StandardResultsSetPagination
    permission_classes = [CanWorkLeads]
    filterset_class = LeadFilter
    ordering_fields = ["created_at", "updated_at", "amount", "visited_at", "customer_name"]

    def get_queryset(self):
        floor = resolve_floor(self.request, required=False)
        return services.lead_queryset(floor=floor)

    def create(self, request, *args, **kwargs):
        floor = resolve_floor(request)
        serializer = LeadCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lead = services.create_lead(floor=floor, actor=request.user, **serializer.validated_data)
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        lead = self.get_object()
        serializer = LeadUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        for name in services.DEDICATED_FIELDS:
            if name in request.data:
                fields[name] = request.data[name]
        lead = services.update_lead(lead.pk, actor=request.user, **fields)
        return Response(LeadSerializer(services.get_lead(lead.pk)).data)

    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):
        lead = self.get_object()
        serializer = LeadTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lead = services.transition_stage(lead.pk, serializer.validated_data["stage"], actor=request.user)
        return Response(LeadSerializer(services.get_lead(lead.pk)).data)

    @action(detail=True, methods=["post"], permission_classes=[IsManagerOrAdmin])
    def assign(self, request, pk=None):
        lead = self.get_object()
        serializer = LeadAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lead = services.assign_lead(lead.pk, serializer.validated_data["salesperson_id"], actor=request.user)
        return Response(LeadSerializer(services.get_lead(lead.pk)).data)

    @action(detail=True, methods=["post"], permission_classes=[IsManagerOrAdmin])
    def unassign(self, request, pk=None):
        lead = self.get_object()
        lead = services.unassign_lead(lead.pk, actor=request.user)
        return Response(LeadSerializer(services.get_lead(lead.pk)).data)

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        floor = resolve_floor(request)
        return _no_store(Response(compute_dashboard(floor)))

    @action(detail=False, methods=["get"])
    def changes(self, request):
        floor = resolve_floor(request)
        return _changes_response(request, notifications.lead_topic(floor))


class SalespersonListView(APIView):
    """Salespeople of a floor with their open lead count (assignment picker)."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        floor = resolve_floor(request)
        people = services.list_salespeople_with_load(floor)
        return Response(SalespersonSerializer(people, many=True).data)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class SalesReportViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Generate, browse and download floor sales reports."""

    serializer_class = SalesReportSerializer
    pagination_class = StandardResultsSetPagination
    permission_classes = [IsAuthenticated]
    filterset_fields = ["period"]
    ordering_fields = ["created_at", "start_date"]

    def get_queryset(self):
        floor = resolve_floor(self.request, required=False)
        return report_services.list_reports(floor)

    def get_serializer_class(self):
        if self.action == "list":
            return SalesReportListSerializer
        return SalesReportSerializer

    def get_permissions(self):
        if self.action == "create":
            return [IsManagerOrAdmin()]
        if self.action == "export_summary":
            return [IsAdmin()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        floor = resolve_floor(request)
        serializer = ReportGenerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["run_async"]:
            result = generate_floor_report.delay(
                floor=floor,
                period=data["period"],
                submitted_by_id=str(request.user.pk),
                notes=data["notes"],
            )
            logger.info("Report generation queued for floor %s (%s)", floor, result.id)
            return Response({"task_id": result.id}, status=status.HTTP_202_ACCEPTED)

        report = report_services.generate_report(
            floor=floor,
            period=data["period"],
            submitted_by=request.user,
            notes=data["notes"],
        )
        return Response(SalesReportSerializer(report).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="export-csv")
    def export_csv(self, request, pk=None):
        return report_services.export_report_csv(self.get_object())

    @action(detail=True, methods=["get"], url_path="export-xlsx")
    def export_xlsx(self, request, pk=None):
        return report_services.export_report_excel(self.get_object())

    @action(detail=False, methods=["get"], url_path="export-summary")
    def export_summary(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return report_services.export_reports_summary_csv(queryset)

    @action(detail=False, methods=["get"])
    def changes(self, request):
        floor = resolve_floor(request)
        return _changes_response(request, notifications.report_topic(floor))
