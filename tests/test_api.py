"""Tests for the HTTP surface: job creation, polling and cancellation."""
import pytest
from fastapi.testclient import TestClient

from fitplan.config.fitting_config_loader import get_fitting_config
from fitplan.config.settings import Settings
from fitplan.main import create_app
from fitplan.models import JobStatus
from fitplan.services.generation_pipeline import GenerationPipeline

GENERATE_BODY = {
    "user": {"primary_goal": "build_muscle"},
    "schedule": {"sessions_per_week": 3, "target_minutes": 30},
}


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def use_llm(client, pools):
    """Swap the app's pipeline for one driven by the given model."""
    def install(llm):
        state = client.app.state
        state.llm = llm
        state.pools = pools
        state.pipeline = GenerationPipeline(
            llm, state.job_manager, pools, Settings(_env_file=None), get_fitting_config()
        )
        return llm
    return install


class TestGenerateProgram:
    """Tests for POST /api/programs/generate."""

    def test_accepted_job_runs_to_completion(self, client, use_llm, scripted_llm, llm_json):
        blueprint = llm_json.blueprint(*llm_json.cycle())
        use_llm(scripted_llm([llm_json.analysis(), blueprint]))

        response = client.post("/api/programs/generate", json=GENERATE_BODY)

        assert response.status_code == 202
        job_id = response.json()["id"]
        assert job_id.startswith("job-")
        assert response.json()["status"] == "queued"

        status_response = client.get(f"/api/generation-jobs/{job_id}")
        assert status_response.status_code == 200
        body = status_response.json()
        assert body["status"] == "completed"
        assert body["progress"] == 100
        assert len(body["result"]["sessions"]) == 12

    def test_second_active_job_is_rejected(self, client):
        active = client.app.state.job_manager.create_job("local-user")

        response = client.post("/api/programs/generate", json=GENERATE_BODY)

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "JOB_ACTIVE"
        assert error["details"] == {"job_id": active.id}

    def test_active_job_of_another_user_does_not_block(self, client, use_llm, scripted_llm):
        client.app.state.job_manager.create_job("someone-else")
        use_llm(scripted_llm(["not json", "not json", "not json"]))

        response = client.post("/api/programs/generate", json=GENERATE_BODY)

        assert response.status_code == 202
        job = client.app.state.job_manager.get_job(response.json()["id"])
        assert job.status == JobStatus.FAILED
        assert job.reason.value == "FormatError"

    def test_inconsistent_schedule_is_rejected(self, client):
        body = {
            "user": {"primary_goal": "build_muscle"},
            "schedule": {"sessions_per_week": 3, "target_minutes": 30, "allowed_min_minutes": 45},
        }
        response = client.post("/api/programs/generate", json=body)

        assert response.status_code == 400
        assert len(client.app.state.job_manager) == 0

    def test_missing_goal_is_unprocessable(self, client):
        response = client.post("/api/programs/generate", json={"user": {}})
        assert response.status_code == 422
        error = response.json()["errors"][0]
        assert error["code"] == "REQUEST_INVALID"
        assert "user" in error["details"]["loc"]


class TestJobStatus:
    """Tests for GET /api/generation-jobs/..."""

    def test_unknown_job_is_404(self, client):
        response = client.get("/api/generation-jobs/job-0-missing")
        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "NF_GENERATIONJOB_001"

    def test_other_users_job_is_404(self, client):
        job = client.app.state.job_manager.create_job("local-user")
        response = client.get(f"/api/generation-jobs/{job.id}", headers={"X-User-Id": "intruder"})
        assert response.status_code == 404

    def test_active_job(self, client):
        assert client.get("/api/generation-jobs/active").status_code == 404

        job = client.app.state.job_manager.create_job("local-user")
        response = client.get("/api/generation-jobs/active")

        assert response.status_code == 200
        assert response.json()["id"] == job.id
        assert response.json()["status"] == "queued"

    def test_header_selects_the_user(self, client):
        job = client.app.state.job_manager.create_job("athlete-7")
        response = client.get("/api/generation-jobs/active", headers={"X-User-Id": "athlete-7"})
        assert response.json()["id"] == job.id


class TestCancelJob:
    """Tests for POST /api/generation-jobs/{id}/cancel."""

    def test_cancel_active_job(self, client):
        jobs = client.app.state.job_manager
        job = jobs.create_job("local-user")
        jobs.update_job(job.id, status=JobStatus.GENERATING, progress=30)

        response = client.post(f"/api/generation-jobs/{job.id}/cancel")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "failed"
        assert body["error"] == "UserCancelled"
        assert body["reason"] == "UserCancelled"
        assert body["progress"] == 30

    def test_cancel_twice_is_conflict(self, client):
        job = client.app.state.job_manager.create_job("local-user")
        client.post(f"/api/generation-jobs/{job.id}/cancel")

        response = client.post(f"/api/generation-jobs/{job.id}/cancel")

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "JOB_TRANSITION"

    def test_cancel_unknown_job_is_404(self, client):
        assert client.post("/api/generation-jobs/job-0-missing/cancel").status_code == 404


class TestOperationalEndpoints:
    """Tests for health and metrics."""

    def test_health(self, client):
        client.app.state.job_manager.create_job("local-user")
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["jobs"] == 1

    def test_llm_health(self, client, use_llm, scripted_llm):
        use_llm(scripted_llm([]))
        body = client.get("/health/llm").json()
        assert body["status"] == "healthy"
        assert body["providers"] == {"scripted": True}

    def test_metrics(self, client):
        client.app.state.job_manager.create_job("local-user")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "generation_jobs_total" in response.text
