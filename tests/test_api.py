"""
HTTP layer: authentication by header, permission checks and error mapping.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from perftrack.api.main import app
from perftrack.core import dao
from perftrack.core.schema import MetricType


@pytest.fixture
def client(org):
    return TestClient(app)


def as_user(actor):
    return {"X-User-Id": actor.id}


class TestAuthentication:

    def test_health_needs_no_user(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["db_health"] is True

    def test_missing_header_is_401(self, client):
        assert client.get("/me").status_code == 401

    def test_unknown_user_is_401(self, client):
        assert client.get("/me", headers={"X-User-Id": "nobody"}).status_code == 401

    def test_inactive_user_is_401(self, client, org):
        assert client.get("/me", headers=as_user(org["inactive"])).status_code == 401

    def test_me(self, client, org):
        response = client.get("/me", headers=as_user(org["alice"]))
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    def test_update_own_name(self, client, org):
        response = client.patch("/me", json={"first_name": "Ally", "last_name": "Anders"},
                                headers=as_user(org["alice"]))
        assert response.status_code == 200
        assert dao.get_actor(org["alice"].id).first_name == "Ally"

    def test_blank_name_rejected(self, client, org):
        response = client.patch("/me", json={"first_name": " ", "last_name": "Anders"},
                                headers=as_user(org["alice"]))
        assert response.status_code == 422


class TestDailyMetricsEndpoints:

    def test_put_then_get(self, client, org):
        payload = {"date": "2024-03-05", "rp": 10, "mp": 4, "notes": "good day"}
        response = client.put("/daily-metrics", json=payload, headers=as_user(org["alice"]))
        assert response.status_code == 200
        assert response.json()["team_id"] == org["north"].id

        view = client.get("/daily-metrics", params={"date": "2024-03-05"}, headers=as_user(org["alice"])).json()
        assert view["record"]["rp"] == 10
        assert view["month"]["totals"]["mp"] == 4

    def test_negative_counter_is_422(self, client, org):
        response = client.put("/daily-metrics", json={"date": "2024-03-05", "rp": -1},
                              headers=as_user(org["alice"]))
        assert response.status_code == 422

    def test_actor_without_team_is_400(self, client, org):
        response = client.put("/daily-metrics", json={"date": "2024-03-05", "rp": 1},
                              headers=as_user(org["admin"]))
        assert response.status_code == 400


class TestPages:

    def test_dashboard(self, client, org):
        response = client.get("/dashboard", params={"year": 2024}, headers=as_user(org["admin"]))
        assert response.status_code == 200
        assert [k["metric"] for k in response.json()["kpis"]] == ["sales", "placements", "fti", "jo"]

    def test_yearly_export(self, client, org):
        dao.create_placement(org["alice"], "Pat Lee", "Engineer", "Acme", date(2024, 3, 5), 20000)
        response = client.get("/yearly-tracking/export", params={"year": 2024}, headers=as_user(org["admin"]))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "yearly-tracking-2024.csv" in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert lines[0].startswith("Team,Metric,Jan")
        assert lines[1] == "North,Placements,0,0,1,0,0,0,0,0,0,0,0,0,1"

    def test_forecast(self, client, org):
        response = client.post("/forecast", json={"target_revenue": 500000, "avg_deal_size": 20000},
                               headers=as_user(org["manager"]))
        assert response.status_code == 200
        body = response.json()
        assert body["required"]["interviews"] == 100
        assert [a["team_name"] for a in body["team_allocations"]] == ["North"]

    def test_forecast_zero_deal_size_is_422(self, client, org):
        response = client.post("/forecast", json={"target_revenue": 500000, "avg_deal_size": 0},
                               headers=as_user(org["admin"]))
        assert response.status_code == 422

    def test_forecast_bad_ratio_is_422(self, client, org):
        response = client.post("/forecast", json={
            "target_revenue": 500000, "avg_deal_size": 20000, "ratios": {"rp_per_job_order": 0},
        }, headers=as_user(org["admin"]))
        assert response.status_code == 422

    def test_forecast_goals_admin_only(self, client, org):
        payload = {"target_revenue": 500000, "avg_deal_size": 20000, "year": 2024, "month": 7}
        assert client.post("/forecast/goals", json=payload, headers=as_user(org["manager"])).status_code == 403
        response = client.post("/forecast/goals", json=payload, headers=as_user(org["admin"]))
        assert response.status_code == 200
        assert len(response.json()["goals"]) == 7


class TestAdminEndpoints:

    def test_user_management_requires_admin(self, client, org):
        assert client.get("/users", headers=as_user(org["manager"])).status_code == 403
        assert client.get("/users", headers=as_user(org["admin"])).status_code == 200

    def test_create_and_update_user(self, client, org):
        response = client.post("/users", json={
            "email": "Dan@Example.com", "first_name": "Dan", "last_name": "Dunn",
            "role": "recruiter", "team_id": org["south"].id,
        }, headers=as_user(org["admin"]))
        assert response.status_code == 200
        user_id = response.json()["id"]
        assert response.json()["email"] == "dan@example.com"

        response = client.patch(f"/users/{user_id}", json={"role": "manager"}, headers=as_user(org["admin"]))
        assert response.json()["role"] == "manager"
        assert response.json()["team_id"] == org["south"].id

    def test_create_user_unknown_team(self, client, org):
        response = client.post("/users", json={
            "email": "x@example.com", "first_name": "X", "last_name": "Y", "team_id": "nope",
        }, headers=as_user(org["admin"]))
        assert response.status_code == 400

    def test_null_name_or_flag_is_422(self, client, org):
        for payload in ({"first_name": None}, {"last_name": None}, {"role": None}, {"is_active": None}):
            response = client.patch(f"/users/{org['alice'].id}", json=payload, headers=as_user(org["admin"]))
            assert response.status_code == 422, payload
        assert dao.get_actor(org["alice"].id).first_name == "Alice"

    def test_null_team_clears_affiliation(self, client, org):
        response = client.patch(f"/users/{org['alice'].id}", json={"team_id": None}, headers=as_user(org["admin"]))
        assert response.status_code == 200
        assert response.json()["team_id"] is None

    def test_store_failure_hides_database_error(self, client, org, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        response = client.post("/users", json={
            "email": "alice@example.com", "first_name": "Al", "last_name": "Dup",
        }, headers=as_user(org["admin"]))
        assert response.status_code == 500
        assert response.json() == {"detail": "Could not save changes. Please try again."}

    def test_toggle_active(self, client, org):
        response = client.post(f"/users/{org['bob'].id}/toggle-active", headers=as_user(org["admin"]))
        assert response.json()["is_active"] is False
        assert client.get("/me", headers=as_user(org["bob"])).status_code == 401

    def test_cannot_deactivate_self(self, client, org):
        response = client.post(f"/users/{org['admin'].id}/toggle-active", headers=as_user(org["admin"]))
        assert response.status_code == 400

    def test_delete_team_with_members_is_409(self, client, org):
        response = client.delete(f"/teams/{org['north'].id}", headers=as_user(org["admin"]))
        assert response.status_code == 409

    def test_team_crud(self, client, org):
        created = client.post("/teams", json={"name": "West"}, headers=as_user(org["admin"])).json()
        renamed = client.patch(f"/teams/{created['id']}", json={"name": "Far West"},
                               headers=as_user(org["admin"])).json()
        assert renamed["name"] == "Far West"
        assert client.delete(f"/teams/{created['id']}", headers=as_user(org["admin"])).status_code == 200
        assert client.patch("/teams/missing", json={"name": "x"}, headers=as_user(org["admin"])).status_code == 404

    def test_blank_team_rename_is_422(self, client, org):
        response = client.patch(f"/teams/{org['north'].id}", json={"name": "  "}, headers=as_user(org["admin"]))
        assert response.status_code == 422
        assert dao.get_team(org["north"].id).name == "North"

    def test_teams_listing_scoped(self, client, org):
        teams = client.get("/teams", headers=as_user(org["manager"])).json()
        assert [t["name"] for t in teams] == ["North"]
        assert teams[0]["member_count"] == 4

    def test_goal_permissions(self, client, org):
        team_goal = {"year": 2024, "metric_type": "sales", "target_value": 1000, "team_id": org["north"].id}
        assert client.post("/goals", json=team_goal, headers=as_user(org["manager"])).status_code == 200
        assert client.post("/goals", json=dict(team_goal, team_id=org["south"].id),
                           headers=as_user(org["manager"])).status_code == 403
        assert client.post("/goals", json=team_goal, headers=as_user(org["alice"])).status_code == 403

        goals = client.get("/goals", params={"year": 2024}, headers=as_user(org["manager"])).json()
        assert [g["metric_type"] for g in goals] == [MetricType.SALES.value]


class TestBoardEndpoints:

    def test_interviews(self, client, org):
        created = client.post("/interviews", json={
            "candidate_name": "Pat Lee", "position": "Engineer", "company": "Acme",
        }, headers=as_user(org["alice"]))
        assert created.status_code == 200
        interview_id = created.json()["id"]

        response = client.patch(f"/interviews/{interview_id}/status", json={"status": "scheduled"},
                                headers=as_user(org["manager"]))
        assert response.json()["status"] == "scheduled"

        # Outside the South manager's scope
        response = client.patch(f"/interviews/{interview_id}/status", json={"status": "completed"},
                                headers=as_user(org["south_manager"]))
        assert response.status_code == 404

        board = client.get("/interviews", headers=as_user(org["manager"])).json()
        assert board["status_counts"]["scheduled"] == 1

    def test_invalid_status_filter_is_400(self, client, org):
        response = client.get("/interviews", params={"status": "lost"}, headers=as_user(org["admin"]))
        assert response.status_code == 400

    def test_deals(self, client, org):
        created = client.post("/deals", json={
            "company": "Acme", "job_title": "Engineer", "candidate_name": "Pat Lee",
            "amount": 20000, "payment_due_date": "2000-01-01",
        }, headers=as_user(org["alice"]))
        assert created.status_code == 200
        assert created.json()["display_status"] == "overdue"
        assert created.json()["status"] == "pending"

        overdue = client.get("/deals", params={"status": "overdue"}, headers=as_user(org["admin"])).json()
        assert overdue["overdue_count"] == 1

        paid = client.patch(f"/deals/{created.json()['id']}/status", json={"status": "paid"},
                            headers=as_user(org["alice"])).json()
        assert paid["display_status"] == "paid"

    def test_negative_deal_amount_is_422(self, client, org):
        response = client.post("/deals", json={
            "company": "Acme", "job_title": "Engineer", "candidate_name": "Pat", "amount": -5,
        }, headers=as_user(org["alice"]))
        assert response.status_code == 422

    def test_placements(self, client, org):
        response = client.post("/placements", json={
            "candidate_name": "Pat Lee", "position": "Engineer", "company": "Acme",
            "placement_date": "2024-03-05", "fee_amount": 20000,
        }, headers=as_user(org["bob"]))
        assert response.status_code == 200

        assert len(client.get("/placements", params={"year": 2024}, headers=as_user(org["bob"])).json()) == 1
        assert client.get("/placements", params={"year": 2024}, headers=as_user(org["alice"])).json() == []
