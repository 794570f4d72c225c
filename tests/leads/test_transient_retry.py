"""Transient store failures: retried for idempotent calls only."""
from unittest import mock

import pytest
from django.db import OperationalError

from leads import services
from leads.exceptions import TransientIO
from leads.models import Stage


@pytest.mark.django_db
class TestTransientFailures:
    def test_reads_are_retried(self, lead):
        real = services._lead_queryset
        with mock.patch(
            "leads.services._lead_queryset",
            side_effect=[OperationalError("connection reset"), real(lead.pk)],
        ) as patched:
            fetched = services.get_lead(lead.pk)

        assert fetched.pk == lead.pk
        assert patched.call_count == 2

    def test_exhausted_retries_surface_transient_io(self, lead, settings):
        settings.PIPELINE_TRANSIENT_RETRIES = 3
        with mock.patch(
            "leads.services._lead_queryset", side_effect=OperationalError("down"),
        ) as patched:
            with pytest.raises(TransientIO) as excinfo:
                services.get_lead(lead.pk)

        assert patched.call_count == 3
        assert excinfo.value.code == "transient_io"

    def test_assignment_is_retried(self, lead, sales_user):
        real = services._lead_queryset
        with mock.patch(
            "leads.services._lead_queryset",
            side_effect=[OperationalError("deadlock"), real(lead.pk, lock=True)],
        ):
            services.assign_lead(lead.pk, sales_user.pk)

        lead.refresh_from_db()
        assert lead.assigned_to == sales_user

    def test_transition_is_not_retried(self, lead):
        with mock.patch(
            "leads.services._lead_queryset", side_effect=OperationalError("down"),
        ) as patched:
            with pytest.raises(TransientIO):
                services.transition_stage(lead.pk, Stage.DEMO)

        assert patched.call_count == 1
        lead.refresh_from_db()
        assert lead.stage == Stage.POTENTIAL

    def test_create_is_not_retried(self, product):
        with mock.patch(
            "leads.models.Lead.objects.create", side_effect=OperationalError("down"),
        ) as patched:
            with pytest.raises(TransientIO):
                services.create_lead(
                    floor=1, customer_name="Priya", customer_phone="1", product=product,
                )
        assert patched.call_count == 1
