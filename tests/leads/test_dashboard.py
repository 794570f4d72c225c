"""Dashboard projection, computed and live."""
from decimal import Decimal

import pytest

from leads import notifications, services
from leads.dashboard import LiveDashboard, compute_dashboard
from leads.models import Stage


@pytest.mark.django_db
class TestComputeDashboard:
    def test_empty_floor(self, db):
        data = compute_dashboard(1)

        assert data["total_leads"] == 0
        assert data["by_stage"] == {stage: 0 for stage in Stage.values}
        assert data["pipeline_amount"] == Decimal("0.00")
        assert data["conversion_rate"] == 0.0

    def test_counts_and_amounts(self, make_lead, product, sales_user):
        won = make_lead(product=product)
        lost = make_lead(amount="10000")
        open_lead = make_lead(amount="25000")
        make_lead(floor=2, amount="99999")
        services.transition_stage(won.pk, Stage.CLOSED_WON)
        services.transition_stage(lost.pk, Stage.CLOSED_LOST)
        services.transition_stage(open_lead.pk, Stage.NEGOTIATION)
        services.assign_lead(won.pk, sales_user.pk)

        data = compute_dashboard(1)

        assert data["total_leads"] == 3
        assert data["by_stage"][Stage.CLOSED_WON] == 1
        assert data["by_stage"][Stage.NEGOTIATION] == 1
        assert data["by_stage"][Stage.POTENTIAL] == 0
        assert data["pipeline_amount"] == Decimal("85000.00")
        assert data["won_amount"] == Decimal("50000.00")
        assert data["won_count"] == 1
        assert data["lost_count"] == 1
        assert data["open_count"] == 1
        assert data["conversion_rate"] == 33.3
        assert data["unassigned_count"] == 1


@pytest.mark.django_db
class TestLiveDashboard:
    def test_refreshes_on_floor_changes(self, product, django_capture_on_commit_callbacks):
        with LiveDashboard(1) as board:
            assert board.snapshot["total_leads"] == 0

            with django_capture_on_commit_callbacks(execute=True):
                lead = services.create_lead(
                    floor=1, customer_name="Priya", customer_phone="1", product=product,
                )
            assert board.snapshot["total_leads"] == 1
            assert board.snapshot["by_stage"][Stage.POTENTIAL] == 1

            with django_capture_on_commit_callbacks(execute=True):
                services.transition_stage(lead.pk, Stage.CLOSED_WON)
            assert board.snapshot["won_count"] == 1
            assert board.refresh_count == 2

        assert board.is_open is False
        assert notifications.channel.subscription_count() == 0

    def test_ignores_other_floors(self, product, django_capture_on_commit_callbacks):
        board = LiveDashboard(2)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                services.create_lead(
                    floor=1, customer_name="Priya", customer_phone="1", product=product,
                )
            assert board.refresh_count == 0
            assert board.snapshot["total_leads"] == 0
        finally:
            board.close()

    def test_reaped_dashboard_catches_up_and_resubscribes(self, product, django_capture_on_commit_callbacks):
        with LiveDashboard(1) as board:
            assert notifications.reap_idle(max_idle=-1) == 1
            assert board.is_open is False

            with django_capture_on_commit_callbacks(execute=True):
                lead = services.create_lead(
                    floor=1, customer_name="Priya", customer_phone="1", product=product,
                )
            assert board.refresh_count == 0

            assert board.snapshot["total_leads"] == 1
            assert board.is_open is True
            assert notifications.channel.subscription_count() == 1

            with django_capture_on_commit_callbacks(execute=True):
                services.transition_stage(lead.pk, Stage.CLOSED_WON)
            assert board.refresh_count == 1
            assert board.snapshot["won_count"] == 1

        assert notifications.channel.subscription_count() == 0

    def test_closed_dashboard_stays_closed(self, db):
        board = LiveDashboard(1)
        board.close()

        assert board.snapshot["total_leads"] == 0

        assert board.is_open is False
        assert notifications.channel.subscription_count() == 0
