"""Stage table and the transition operation."""
import pytest

from core.models import AuditLog
from leads import services, stages
from leads.exceptions import InvalidTransition
from leads.models import Lead, Stage


class TestStageTable:
    def test_next_stage_walks_the_happy_path(self):
        assert stages.next_stage(Stage.POTENTIAL) == Stage.DEMO
        assert stages.next_stage(Stage.DEMO) == Stage.PROPOSAL
        assert stages.next_stage(Stage.PROPOSAL) == Stage.NEGOTIATION
        assert stages.next_stage(Stage.NEGOTIATION) == Stage.CLOSED_WON

    def test_closed_stages_have_no_next_stage(self):
        assert stages.next_stage(Stage.CLOSED_WON) is None
        assert stages.next_stage(Stage.CLOSED_LOST) is None

    def test_open_stages_allow_every_stage(self):
        for stage in stages.OPEN_STAGES:
            assert stages.allowed_targets(stage) == list(Stage.values)

    def test_closed_stages_allow_nothing(self):
        assert stages.allowed_targets(Stage.CLOSED_WON) == []
        assert stages.allowed_targets(Stage.CLOSED_LOST) == []

    def test_undefined_stage_is_refused(self):
        with pytest.raises(InvalidTransition) as excinfo:
            stages.check_transition(Stage.DEMO, "archived")
        assert excinfo.value.code == "invalid_transition"

    def test_check_transition_normalises_target(self):
        assert stages.check_transition("demo", "closed_lost") == Stage.CLOSED_LOST


@pytest.mark.django_db
class TestTransitionStage:
    def test_forward_step(self, lead):
        moved = services.transition_stage(lead.pk, Stage.DEMO)
        assert moved.stage == Stage.DEMO
        assert moved.closed_at is None

    def test_jump_ahead_and_back_to_potential(self, lead):
        services.transition_stage(lead.pk, Stage.NEGOTIATION)
        moved = services.transition_stage(lead.pk, Stage.POTENTIAL)
        assert moved.stage == Stage.POTENTIAL

    def test_proposal_to_closed_lost(self, lead):
        services.transition_stage(lead.pk, Stage.PROPOSAL)

        moved = services.transition_stage(lead.pk, Stage.CLOSED_LOST)

        assert moved.stage == Stage.CLOSED_LOST
        assert moved.closed_at is not None

    def test_closed_lead_refuses_any_transition(self, lead):
        services.transition_stage(lead.pk, Stage.CLOSED_LOST)

        with pytest.raises(InvalidTransition):
            services.transition_stage(lead.pk, Stage.DEMO)

        lead.refresh_from_db()
        assert lead.stage == Stage.CLOSED_LOST

    @pytest.mark.parametrize("terminal", [Stage.CLOSED_WON, Stage.CLOSED_LOST])
    def test_refusal_is_repeatable(self, lead, terminal):
        services.transition_stage(lead.pk, terminal)

        for target in list(Stage.values) + ["unknown"]:
            with pytest.raises(InvalidTransition):
                services.transition_stage(lead.pk, target)

        lead.refresh_from_db()
        assert lead.stage == terminal

    def test_undefined_stage_leaves_lead_untouched(self, lead):
        with pytest.raises(InvalidTransition):
            services.transition_stage(lead.pk, "won")
        assert Lead.objects.get(pk=lead.pk).stage == Stage.POTENTIAL

    def test_same_stage_is_a_touch(self, lead):
        before = lead.updated_at

        moved = services.transition_stage(lead.pk, Stage.POTENTIAL)

        assert moved.stage == Stage.POTENTIAL
        assert moved.updated_at > before

    def test_transition_is_audited(self, lead, sales_user):
        services.transition_stage(lead.pk, Stage.DEMO, actor=sales_user)

        entry = AuditLog.objects.get(action="LEAD_MOVE_STAGE")
        assert entry.before_json == {"stage": "potential"}
        assert entry.after_json == {"stage": "demo"}
        assert entry.actor == sales_user

    def test_stage_is_always_a_defined_value(self, make_lead):
        leads = [make_lead() for _ in range(3)]
        services.transition_stage(leads[0].pk, Stage.CLOSED_WON)
        services.transition_stage(leads[1].pk, Stage.PROPOSAL)
        with pytest.raises(InvalidTransition):
            services.transition_stage(leads[2].pk, "Demo")

        assert set(Lead.objects.values_list("stage", flat=True)) <= set(Stage.values)
