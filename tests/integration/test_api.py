# tests/integration/test_api.py
import pytest
from fastapi.testclient import TestClient

from bracketpool.api.dependencies import get_clock, get_site_config, get_tournament_config
from bracketpool.api.main import create_app
from bracketpool.exceptions import ConfigurationError
from bracketpool.site_config import SiteConfig
from bracketpool.utils.observability import get_metrics
from conftest import find_game


@pytest.mark.integration
class TestBracketApi:
    """HTTP surface over the validator, gate and standings."""

    @pytest.fixture
    def site(self):
        return {"config": SiteConfig()}

    @pytest.fixture
    def client(self, small_config, site, fixed_clock):
        """App wired to the four-team tournament and a pinned clock."""
        app = create_app()
        app.dependency_overrides[get_tournament_config] = lambda: small_config
        app.dependency_overrides[get_site_config] = lambda: site["config"]
        app.dependency_overrides[get_clock] = lambda: fixed_clock
        return TestClient(app)

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_metrics(self, client):
        client.get("/api/health")
        response = client.get("/api/metrics")

        assert response.status_code == 200
        assert "api_request_latency_seconds" in response.text

    def test_check_creation_open(self, client):
        response = client.get("/api/bracket/check-creation")

        assert response.status_code == 200
        assert response.json() == {"success": True, "allowed": True}

    def test_check_creation_disabled(self, client, site):
        site["config"] = SiteConfig(stop_submit_toggle=True, final_message_submit_off="Closed for maintenance")

        response = client.get("/api/bracket/check-creation")

        assert response.json() == {"success": True, "allowed": False, "reason": "Closed for maintenance"}

    def test_check_creation_after_deadline(self, client, site, past_and_future):
        past, _ = past_and_future
        site["config"] = SiteConfig(stop_submit_date_time=past)

        body = client.get("/api/bracket/check-creation").json()

        assert body["allowed"] is False
        assert body["reason"] == SiteConfig().final_message_too_late

    def test_validate_valid_bracket(self, client, scenario_submission):
        response = client.post("/api/bracket/validate", json=scenario_submission)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "validation": {"isValid": True, "errors": [], "warnings": []},
        }

    def test_validate_invalid_bracket_is_still_success(self, client, scenario_submission):
        find_game(scenario_submission, 2, 1)["winner"] = {"id": "Y", "name": "Y"}

        response = client.post("/api/bracket/validate", json=scenario_submission)

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["validation"]["isValid"] is False
        assert len(body["validation"]["errors"]) == 1

    @pytest.mark.parametrize("payload", [[1, 2, 3], {"playerName": "Pat", "games": "all"}])
    def test_validate_malformed_payload(self, client, payload):
        response = client.post("/api/bracket/validate", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid bracket submission"}

    def test_site_tie_breaker_bounds_apply(self, client, site, scenario_submission):
        site["config"] = SiteConfig(tie_breaker_low=100, tie_breaker_high=200)
        scenario_submission["tieBreaker"] = 250

        body = client.post("/api/bracket/validate", json=scenario_submission).json()

        assert body["validation"]["errors"] == ["Tie breaker must be between 100 and 200"]

    def test_submit_blocked_by_gate(self, client, site, scenario_submission):
        site["config"] = SiteConfig(stop_submit_toggle="Yes")

        response = client.post("/api/bracket", json=scenario_submission)

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "allowed": False,
            "reason": SiteConfig().final_message_submit_off,
        }

    def test_submit_blocked_before_shape_check(self, client, site):
        site["config"] = SiteConfig(stop_submit_toggle=True)
        response = client.post("/api/bracket", json="not a bracket")
        assert response.status_code == 403

    def test_submit_when_open(self, client, scenario_submission):
        response = client.post("/api/bracket", json=scenario_submission)

        assert response.status_code == 200
        assert response.json()["validation"]["isValid"] is True

    def test_standings(self, client, scenario_submission):
        bracket = dict(scenario_submission, id="b1", submittedAt="2026-03-16T09:00:00Z", tieBreaker=140)
        results = [
            {"round": 1, "gameNumber": 1, "team1": "X", "team2": "Y", "winner": "X", "completed": True},
            {"round": 1, "gameNumber": 2, "team1": "Z", "team2": "W", "winner": "Z", "completed": True},
        ]

        response = client.post(
            "/api/standings",
            json={"brackets": [bracket], "results": results, "actualTieBreaker": 150},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["count"] == 1
        row = body["standings"][0]
        assert row["rank"] == 1
        assert row["total_points"] == 2
        assert row["max_possible"] == 4
        assert row["tie_breaker_diff"] == 10
        assert "player_email" not in row

    def test_standings_malformed(self, client):
        response = client.post("/api/standings", json={"brackets": [{"playerName": "no id"}]})
        assert response.status_code == 400

    def test_configuration_error_is_500(self, client):
        def broken():
            raise ConfigurationError("tournament file missing")

        client.app.dependency_overrides[get_tournament_config] = broken

        response = client.post("/api/bracket/validate", json={"games": []})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Server configuration error"}

    def test_validate_infinite_tie_breaker(self, client):
        body = (
            '{"playerName": "Pat Jones", "playerEmail": "pat@example.com",'
            ' "games": [], "tieBreaker": Infinity}'
        )

        response = client.post(
            "/api/bracket/validate",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert "Tie breaker must be a whole number" in response.json()["validation"]["errors"]

    def test_validate_records_outcome(self, client, scenario_submission):
        registry = get_metrics().registry
        before = registry.get_sample_value("bracket_validations_total", {"outcome": "valid"}) or 0.0

        client.post("/api/bracket/validate", json=scenario_submission)

        assert registry.get_sample_value("bracket_validations_total", {"outcome": "valid"}) == before + 1

    def test_check_creation_records_decision(self, client, site):
        site["config"] = SiteConfig(stop_submit_toggle=True)
        registry = get_metrics().registry
        before = registry.get_sample_value("submission_gate_decisions_total", {"decision": "disabled"}) or 0.0

        client.get("/api/bracket/check-creation")

        assert registry.get_sample_value("submission_gate_decisions_total", {"decision": "disabled"}) == before + 1

    def test_standings_with_text_game_entry(self, client):
        response = client.post(
            "/api/standings",
            json={"brackets": [{"id": "b1", "games": ["R1G1: X"]}], "results": []},
        )
        assert response.status_code == 400
