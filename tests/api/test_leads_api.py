import pytest

from leads import services
from leads.models import Lead, Stage

LEADS_URL = "/api/v1/leads/"


def lead_url(lead, suffix=""):
    return f"{LEADS_URL}{lead.pk}/{suffix}"


@pytest.mark.django_db
class TestLeadCreate:
    def test_create_lead(self, sales_client, product):
        response = sales_client.post(
            LEADS_URL,
            {
                "customer_name": "Priya Sharma",
                "customer_phone": "+91 98765 43210",
                "product": str(product.pk),
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["floor"] == 1
        assert response.data["stage"] == Stage.POTENTIAL
        assert response.data["amount"] == "50000.00"
        assert response.data["product_name"] == "Pearl Strand"
        assert response.data["next_stage"] == Stage.DEMO
        assert Lead.objects.filter(customer_name="Priya Sharma").exists()

    def test_missing_fields_are_listed(self, sales_client):
        response = sales_client.post(LEADS_URL, {"customer_name": "  "}, format="json")

        assert response.status_code == 400
        assert response.data["code"] == "validation_error"
        assert set(response.data["errors"]) == {"customer_name", "customer_phone", "product"}
        assert not Lead.objects.exists()

    def test_malformed_amount(self, sales_client):
        response = sales_client.post(
            LEADS_URL,
            {"customer_name": "A", "customer_phone": "1", "interest": "Ring", "amount": "lots"},
            format="json",
        )

        assert response.status_code == 400
        assert "amount" in response.data["errors"]

    def test_sales_user_cannot_create_on_other_floor(self, sales_client):
        response = sales_client.post(
            LEADS_URL,
            {"floor": 2, "customer_name": "A", "customer_phone": "1", "interest": "Ring"},
            format="json",
        )

        assert response.status_code == 403
        assert response.data["code"] == "permission_denied"

    def test_admin_must_name_floor(self, admin_client):
        payload = {"customer_name": "A", "customer_phone": "1", "interest": "Ring"}

        assert admin_client.post(LEADS_URL, payload, format="json").status_code == 400
        response = admin_client.post(LEADS_URL, {**payload, "floor": 3}, format="json")
        assert response.status_code == 201
        assert response.data["floor"] == 3

    def test_support_staff_cannot_create(self, support_client):
        response = support_client.post(
            LEADS_URL,
            {"customer_name": "A", "customer_phone": "1", "interest": "Ring"},
            format="json",
        )
        assert response.status_code == 403

    def test_anonymous_rejected(self, api_client):
        assert api_client.get(LEADS_URL).status_code == 403


@pytest.mark.django_db
class TestLeadReadAndUpdate:
    def test_list_is_scoped_to_floor(self, sales_client, lead, make_lead):
        make_lead(floor=2, customer_name="Floor Two")

        response = sales_client.get(LEADS_URL)

        assert response.status_code == 200
        names = [row["customer_name"] for row in response.data["results"]]
        assert names == ["Priya Sharma"]

    def test_other_floor_lead_is_not_found(self, sales_client, make_lead):
        other = make_lead(floor=2)

        response = sales_client.get(lead_url(other))

        assert response.status_code == 404
        assert response.data["code"] == "not_found"

    def test_admin_sees_all_floors(self, admin_client, lead, make_lead):
        make_lead(floor=2)

        assert admin_client.get(LEADS_URL).data["count"] == 2
        assert admin_client.get(LEADS_URL, {"floor": 2}).data["count"] == 1

    def test_filter_by_stage_and_unassigned(self, manager_client, lead, make_lead, sales_user):
        other = make_lead(customer_name="Rahul Verma")
        services.assign_lead(other.pk, sales_user.pk)
        services.transition_stage(other.pk, Stage.DEMO)

        by_stage = manager_client.get(LEADS_URL, {"stage": "demo"})
        unassigned = manager_client.get(LEADS_URL, {"assigned_to": "unassigned"})
        search = manager_client.get(LEADS_URL, {"search": "rahul"})

        assert [r["customer_name"] for r in by_stage.data["results"]] == ["Rahul Verma"]
        assert [r["customer_name"] for r in unassigned.data["results"]] == ["Priya Sharma"]
        assert [r["customer_name"] for r in search.data["results"]] == ["Rahul Verma"]

    def test_patch_editable_fields(self, sales_client, lead):
        response = sales_client.patch(
            lead_url(lead), {"notes": "Prefers 22k", "amount": "48000"}, format="json",
        )

        assert response.status_code == 200
        assert response.data["notes"] == "Prefers 22k"
        assert response.data["amount"] == "48000.00"
        assert response.data["stage"] == Stage.POTENTIAL

    @pytest.mark.parametrize("field,value", [("stage", "demo"), ("floor", 2)])
    def test_patch_refuses_dedicated_fields(self, sales_client, lead, field, value):
        response = sales_client.patch(lead_url(lead), {field: value}, format="json")

        assert response.status_code == 400
        assert response.data["code"] == "validation_error"
        assert field in response.data["errors"]
        lead.refresh_from_db()
        assert lead.stage == Stage.POTENTIAL
        assert lead.floor == 1


@pytest.mark.django_db
class TestLeadPipelineActions:
    def test_transition(self, sales_client, lead):
        response = sales_client.post(lead_url(lead, "transition/"), {"stage": "demo"}, format="json")

        assert response.status_code == 200
        assert response.data["stage"] == Stage.DEMO
        assert response.data["next_stage"] == Stage.PROPOSAL

    def test_transition_from_closed_lead_conflicts(self, sales_client, lead):
        services.transition_stage(lead.pk, Stage.CLOSED_WON)

        response = sales_client.post(lead_url(lead, "transition/"), {"stage": "demo"}, format="json")

        assert response.status_code == 409
        assert response.data["code"] == "invalid_transition"

    def test_unknown_stage_conflicts(self, sales_client, lead):
        response = sales_client.post(lead_url(lead, "transition/"), {"stage": "shipped"}, format="json")

        assert response.status_code == 409
        assert response.data["code"] == "invalid_transition"

    def test_manager_assigns(self, manager_client, lead, sales_user):
        response = manager_client.post(
            lead_url(lead, "assign/"), {"salesperson_id": str(sales_user.pk)}, format="json",
        )

        assert response.status_code == 200
        assert response.data["assigned_to"] == sales_user.pk
        assert response.data["assigned_to_name"] == "Rohan Gupta"

    def test_assign_to_other_floor_refused(self, manager_client, lead, floor2_sales_user):
        response = manager_client.post(
            lead_url(lead, "assign/"), {"salesperson_id": str(floor2_sales_user.pk)}, format="json",
        )

        assert response.status_code == 400
        assert response.data["code"] == "invalid_assignee"

    def test_sales_user_cannot_assign(self, sales_client, lead, sales_user):
        response = sales_client.post(
            lead_url(lead, "assign/"), {"salesperson_id": str(sales_user.pk)}, format="json",
        )
        assert response.status_code == 403

    def test_unassign(self, manager_client, lead, sales_user):
        services.assign_lead(lead.pk, sales_user.pk)

        response = manager_client.post(lead_url(lead, "unassign/"))

        assert response.status_code == 200
        assert response.data["assigned_to"] is None


@pytest.mark.django_db
class TestFloorViews:
    def test_dashboard(self, manager_client, lead, make_lead):
        make_lead(amount="10000")
        services.transition_stage(lead.pk, Stage.CLOSED_WON)

        response = manager_client.get(f"{LEADS_URL}dashboard/")

        assert response.status_code == 200
        assert response.data["floor"] == 1
        assert response.data["total_leads"] == 2
        assert response.data["won_count"] == 1
        assert response.data["conversion_rate"] == 50.0
        assert response.data["by_stage"]["potential"] == 1

    def test_admin_dashboard_needs_floor(self, admin_client):
        response = admin_client.get(f"{LEADS_URL}dashboard/")

        assert response.status_code == 400
        assert response.data["code"] == "validation_error"

    def test_changes_moves_after_commit(self, sales_client, django_capture_on_commit_callbacks):
        first = sales_client.get(f"{LEADS_URL}changes/").data
        assert first == {"topic": "leads.floor.1", "version": 0, "changed": False}

        with django_capture_on_commit_callbacks(execute=True):
            sales_client.post(
                LEADS_URL,
                {"customer_name": "A", "customer_phone": "1", "interest": "Ring"},
                format="json",
            )

        response = sales_client.get(f"{LEADS_URL}changes/", {"since": first["version"]})
        assert response.data["changed"] is True
        assert response.data["version"] == 1
        assert "no-store" in response["Cache-Control"]

    def test_salespeople_with_load(self, manager_client, lead, sales_user, other_sales_user, floor2_sales_user):
        services.assign_lead(lead.pk, sales_user.pk)

        response = manager_client.get("/api/v1/salespeople/")

        assert response.status_code == 200
        assert [(p["name"], p["active_lead_count"]) for p in response.data] == [
            ("Rohan Gupta", 1),
            ("Sneha Nair", 0),
        ]
