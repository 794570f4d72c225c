"""Query-string filters for the lead list."""
import django_filters

from leads.models import Lead, Stage
from leads.services import lead_queryset


class LeadFilter(django_filters.FilterSet):
    stage = django_filters.ChoiceFilter(choices=Stage.choices)
    assigned_to = django_filters.CharFilter(help_text='Salesperson id, or "unassigned".')
    created_from = django_filters.IsoDateTimeFilter()
    created_to = django_filters.IsoDateTimeFilter()
    search = django_filters.CharFilter()

    class Meta:
        model = Lead
        fields = []

    def filter_queryset(self, queryset):
        data = self.form.cleaned_data
        return lead_queryset(
            queryset=queryset,
            stage=data.get("stage") or None,
            assigned_to=data.get("assigned_to") or None,
            created_from=data.get("created_from"),
            created_to=data.get("created_to"),
            search=data.get("search") or None,
        )
