"""
API tests for the job, research and skill routers.
"""
import csv
import io
import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tests.conftest import make_service
from tracker import list_fields
from tracker.database import get_db
from tracker.main import app
from tracker.models import SkillLearning
from tracker.services.ai_service import get_ai_service


def create_job(client, **overrides):
    body = {"company_name": "Apple", "position_name": "iOS Developer", "required_skills": ["Swift"]}
    body.update(overrides)
    response = client.post("/api/jobs/", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def create_skill(client, **overrides):
    body = {
        "skill_name": "SwiftUI",
        "start_date": "2025-01-01T00:00:00",
        "target_date": "2025-02-01T00:00:00",
        "progress": 0.25,
    }
    body.update(overrides)
    response = client.post("/api/skills/", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# --- System ---

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ai_status(client):
    data = client.get("/api/ai/status").json()
    assert data["configured"] is True
    assert data["endpoint"].endswith("/chat/completions")


# --- Jobs ---

def test_job_create_and_list(client):
    job = create_job(client, required_skills="Swift, UIKit")

    assert job["status"] == "Applied"
    assert job["required_skills"] == ["Swift", "UIKit"]

    listed = client.get("/api/jobs/").json()
    assert [j["id"] for j in listed] == [job["id"]]


def test_job_list_filters_and_sorting(client):
    create_job(client, company_name="Apple", apply_date="2025-01-01T00:00:00")
    create_job(client, company_name="Google", status="Interview", apply_date="2025-01-03T00:00:00")
    create_job(client, company_name="Amazon", apply_date="2025-01-02T00:00:00")

    newest_first = [j["company_name"] for j in client.get("/api/jobs/").json()]
    assert newest_first == ["Google", "Amazon", "Apple"]

    by_name = client.get("/api/jobs/", params={"sort_by": "company_name", "sort_order": "asc"}).json()
    assert [j["company_name"] for j in by_name] == ["Amazon", "Apple", "Google"]

    interviews = client.get("/api/jobs/", params={"status": "Interview"}).json()
    assert [j["company_name"] for j in interviews] == ["Google"]

    searched = client.get("/api/jobs/", params={"search": "goo"}).json()
    assert [j["company_name"] for j in searched] == ["Google"]


def test_job_rejects_unknown_status_and_blank_name(client):
    assert client.post("/api/jobs/", json={
        "company_name": "Apple", "position_name": "Dev", "status": "Ghosted"
    }).status_code == 422
    assert client.post("/api/jobs/", json={
        "company_name": "   ", "position_name": "Dev"
    }).status_code == 422


def test_job_update_and_delete(client):
    job = create_job(client)

    updated = client.patch(f"/api/jobs/{job['id']}", json={"status": "Offer"}).json()
    assert updated["status"] == "Offer"
    assert updated["company_name"] == "Apple"

    response = client.delete(f"/api/jobs/{job['id']}")
    assert response.json()["deleted"] == 1
    assert client.get(f"/api/jobs/{job['id']}").status_code == 404


def test_job_skill_items(client):
    job = create_job(client)

    job = client.post(f"/api/jobs/{job['id']}/skills", json={"item": "UIKit"}).json()
    assert job["required_skills"] == ["Swift", "UIKit"]

    job = client.delete(f"/api/jobs/{job['id']}/skills", params={"item": "Swift"}).json()
    assert job["required_skills"] == ["UIKit"]


def test_job_stats(client):
    create_job(client)
    create_job(client, status="Offer")

    stats = client.get("/api/jobs/stats").json()
    assert stats == {"total": 2, "by_status": {"Applied": 1, "Interview": 0, "Offer": 1, "Rejected": 0}}


def test_bulk_delete_unknown_id_deletes_nothing(client):
    first = create_job(client)
    second = create_job(client, company_name="Google")

    response = client.post("/api/jobs/bulk-delete", json={"ids": [first["id"], 9999]})
    assert response.status_code == 404
    assert len(client.get("/api/jobs/").json()) == 2

    response = client.post("/api/jobs/bulk-delete", json={"ids": [first["id"], second["id"], first["id"]]})
    assert response.json()["deleted"] == 2
    assert client.get("/api/jobs/").json() == []


def test_delete_all_jobs(client):
    create_job(client)
    create_job(client)
    assert client.delete("/api/jobs/").json()["deleted"] == 2


# --- Research ---

def test_research_crud(client):
    response = client.post("/api/research/", json={
        "university_name": "Stanford", "professor_name": "Dr. Smith", "research_field": "Computer Science",
    })
    assert response.status_code == 201
    item = response.json()
    assert item["status"] == "Preparing"

    item = client.patch(f"/api/research/{item['id']}", json={"status": "Under Review"}).json()
    assert item["status"] == "Under Review"

    by_field = client.get("/api/research/", params={"research_field": "Computer Science"}).json()
    assert [r["id"] for r in by_field] == [item["id"]]

    stats = client.get("/api/research/stats").json()
    assert stats["by_status"]["Under Review"] == 1
    assert stats["by_status"]["Accepted"] == 0

    assert client.delete(f"/api/research/{item['id']}").status_code == 200
    assert client.get(f"/api/research/{item['id']}").status_code == 404


def test_research_recent(client):
    for day in range(1, 8):
        client.post("/api/research/", json={
            "university_name": f"University {day}", "professor_name": "Dr. Lee",
            "research_field": "AI", "apply_date": f"2025-03-0{day}T00:00:00",
        })

    recent = client.get("/api/research/recent", params={"limit": 3}).json()
    assert [r["university_name"] for r in recent] == ["University 7", "University 6", "University 5"]


# --- Skills ---

def test_skill_create_derived_fields(client):
    skill = create_skill(client)

    assert skill["progress_status"] == "Just Started"
    assert skill["formatted_progress"] == "25%"
    assert skill["color"] == "#4A90E2"
    assert skill["resources"] == []
    assert skill["daily_updates"] == []


def test_skill_rejects_target_before_start(client):
    response = client.post("/api/skills/", json={
        "skill_name": "Rust",
        "start_date": "2025-03-01T00:00:00",
        "target_date": "2025-02-01T00:00:00",
    })
    assert response.status_code == 422


def test_skill_update_checks_range_against_stored_dates(client):
    skill = create_skill(client)

    response = client.patch(f"/api/skills/{skill['id']}", json={"target_date": "2024-12-01T00:00:00"})
    assert response.status_code == 422

    response = client.patch(f"/api/skills/{skill['id']}", json={"target_date": "2025-03-01T00:00:00"})
    assert response.status_code == 200
    assert response.json()["target_date"].startswith("2025-03-01")


def test_corrupted_date_range_reads_as_zero_days(client, store):
    start = datetime(2025, 3, 1)
    skill = store.create(SkillLearning, skill_name="Legacy", start_date=start, target_date=start - timedelta(days=5))

    response = client.get(f"/api/skills/{skill.id}")
    assert response.status_code == 200
    assert response.json()["days_remaining"] == 0


def test_skill_progress_is_clamped(client):
    skill = create_skill(client)

    data = client.patch(f"/api/skills/{skill['id']}/progress", json={"progress": 1.5}).json()
    assert data["progress"] == 1.0
    assert data["progress_status"] == "Completed"


def test_skill_color(client):
    skill = create_skill(client)

    data = client.patch(f"/api/skills/{skill['id']}/color", json={"color": "#abcdef"}).json()
    assert data["color"] == "#ABCDEF"

    assert client.patch(f"/api/skills/{skill['id']}/color", json={"color": "blue"}).status_code == 422


def test_skill_resources(client):
    skill = create_skill(client, resources="https://a.example\nhttps://b.example")
    assert skill["resources"] == ["https://a.example", "https://b.example"]

    skill = client.post(f"/api/skills/{skill['id']}/resources", json={"item": "https://c.example"}).json()
    skill = client.delete(f"/api/skills/{skill['id']}/resources", params={"item": "https://a.example"}).json()
    assert skill["resources"] == ["https://b.example", "https://c.example"]


def test_skill_daily_updates(client):
    skill = create_skill(client)

    response = client.post(f"/api/skills/{skill['id']}/updates", json={"note": "Finished chapter 1"})
    assert response.status_code == 201
    update = response.json()
    assert update["note"] == "Finished chapter 1"

    skill = client.get(f"/api/skills/{skill['id']}").json()
    assert [u["id"] for u in skill["daily_updates"]] == [update["id"]]

    url = f"/api/skills/{skill['id']}/updates/{update['id']}"
    assert client.delete(url).status_code == 200
    assert client.delete(url).status_code == 404


def test_skill_list_active_only(client):
    create_skill(client, skill_name="Rust", target_date="2025-03-01T00:00:00")
    create_skill(client, skill_name="Go", target_date="2025-01-15T00:00:00")
    done = create_skill(client, skill_name="SQL")
    client.patch(f"/api/skills/{done['id']}/progress", json={"progress": 1})

    active = client.get("/api/skills/", params={"active_only": True}).json()
    assert [s["skill_name"] for s in active] == ["Go", "Rust"]

    everything = client.get("/api/skills/").json()
    assert [s["skill_name"] for s in everything] == ["Go", "Rust", "SQL"]


def test_skill_stats(client):
    create_skill(client, progress=0.1)
    create_skill(client, progress=0.8)
    create_skill(client, progress=1.0)

    stats = client.get("/api/skills/stats").json()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["completed"] == 1
    assert stats["by_progress_status"] == {
        "Just Started": 1, "In Progress": 0, "Almost There": 1, "Completed": 1,
    }


# --- Analyze ---

def test_analyze_jobs_sends_recent_summary(client, provider):
    create_job(client, status="Interview", required_skills=["Python"])

    data = client.post("/api/jobs/analyze").json()

    assert data["ok"] is True
    assert data["summary"] == "Great progress! Keep going 🚀"
    assert data["record_count"] == 1
    prompt = json.loads(provider.requests[0].content)["messages"][1]["content"]
    assert "- Statuses: Interview: 1" in prompt
    assert "- Required skills: Python" in prompt


def test_analyze_failure_is_shown_as_text(client, provider):
    provider.status_code = 500
    provider.body = {"error": "model overloaded"}

    response = client.post("/api/research/analyze")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is False
    assert data["error"] == "api_error"
    assert data["summary"].startswith("Analysis failed")


def test_analyze_without_key_reports_configuration(client, provider):
    app.dependency_overrides[get_ai_service] = lambda: make_service(provider, deepinfra_api_key="")

    data = client.post("/api/skills/analyze").json()

    assert data["ok"] is False
    assert data["error"] == "configuration"
    assert provider.requests == []


def test_analyze_while_running_is_conflict(client, ai):
    ai._in_flight.add("jobs")
    assert client.post("/api/jobs/analyze").status_code == 409


# --- Prompts ---

def test_update_prompt_requires_placeholders(client):
    response = client.put("/api/ai/prompts/skill_summary", json={"template": "Summarize my skills"})
    assert response.status_code == 400

    response = client.put("/api/ai/prompts/skill_summary", json={"template": "Skills:\n{progress_report}"})
    assert response.status_code == 200
    assert client.get("/api/ai/prompts/skill_summary").json()["template"] == "Skills:\n{progress_report}"

    assert client.get("/api/ai/prompts/unknown").status_code == 404


# --- Export / import / sample data ---

def test_export_csv(client):
    create_job(client, required_skills=["Swift", "UIKit"], apply_date="2025-03-05T10:00:00")

    response = client.get("/api/export", params={"format": "csv"})

    assert response.status_code == 200
    lines = response.text.strip().splitlines()
    assert lines[0] == "company_name,position_name,apply_date,status,required_skills"
    assert lines[1] == 'Apple,iOS Developer,"Mar 5, 2025",Applied,"Swift,UIKit"'


def test_export_then_import(client):
    create_job(client)
    skill = create_skill(client, resources=["https://a.example"])
    client.post(f"/api/skills/{skill['id']}/updates", json={"note": "Day one"})

    exported = client.get("/api/export").json()
    assert set(exported) == {"jobs", "research", "skills"}

    client.delete("/api/jobs/")
    client.delete("/api/skills/")

    result = client.post("/api/import", json=exported).json()
    assert result["jobs_imported"] == 1
    assert result["skills_imported"] == 1
    assert result["errors"] == []

    skills = client.get("/api/skills/").json()
    assert skills[0]["resources"] == ["https://a.example"]
    assert [u["note"] for u in skills[0]["daily_updates"]] == ["Day one"]


def test_import_legacy_text_lists_and_bad_records(client):
    result = client.post("/api/import", json={
        "jobs": [
            {"company_name": "Apple", "position_name": "Dev", "required_skills": "Swift,UIKit"},
            {"position_name": "No company"},
        ],
        "skills": [
            {"skill_name": "Go", "target_date": "2099-01-01T00:00:00", "resources": "https://go.dev\nhttps://gobyexample.com"},
        ],
    }).json()

    assert result["jobs_imported"] == 1
    assert result["skills_imported"] == 1
    assert len(result["errors"]) == 1
    assert result["errors"][0].startswith("jobs[1]")

    jobs = client.get("/api/jobs/").json()
    assert jobs[0]["required_skills"] == ["Swift", "UIKit"]
    skills = client.get("/api/skills/").json()
    assert skills[0]["resources"] == ["https://go.dev", "https://gobyexample.com"]


def test_sample_data_reset(client):
    created = client.post("/api/sample-data").json()["created"]
    assert created == {"jobs": 5, "research": 1, "skills": 1}

    client.post("/api/sample-data", params={"reset": True})

    assert len(client.get("/api/jobs/").json()) == 5
    assert len(client.get("/api/research/").json()) == 1
    assert len(client.get("/api/skills/").json()) == 1

    stats = client.get("/api/stats").json()
    assert stats["jobs"]["total"] == 5
    assert stats["skills"] == {"total": 1, "active": 1, "completed": 0}


def test_export_csv_skills_cell_decodes_back(client):
    create_job(client, required_skills=["Swift", "UIKit"])
    create_job(client, company_name="Google", required_skills=["C, C++", "Go"])

    response = client.get("/api/export", params={"format": "csv"})
    rows = {row["company_name"]: row for row in csv.DictReader(io.StringIO(response.text))}

    assert list_fields.decode(rows["Apple"]["required_skills"]) == ["Swift", "UIKit"]
    # A skill containing the separator is written as a JSON list instead
    assert json.loads(rows["Google"]["required_skills"]) == ["C, C++", "Go"]


def test_import_tolerates_null_and_malformed_sections(client):
    response = client.post("/api/import", json={
        "jobs": None,
        "research": "not a list",
        "skills": [
            {"skill_name": "Go", "target_date": "2099-01-01T00:00:00", "daily_updates": 5},
        ],
    })

    assert response.status_code == 200
    result = response.json()
    assert result["jobs_imported"] == 0
    assert result["research_imported"] == 0
    assert result["skills_imported"] == 1
    assert result["errors"] == [
        "research: expected a list, got str",
        "skills[0].daily_updates: expected a list, got int",
    ]


def test_update_prompt_rejects_bad_templates(client):
    assert client.put("/api/ai/prompts/job_summary", json={"template": 123}).status_code == 400

    response = client.put("/api/ai/prompts/job_summary", json={
        "template": "{total} {total.real} {statuses} {skills}",
    })
    assert response.status_code == 400
    assert "{total}" in client.get("/api/ai/prompts/job_summary").json()["template"]


def test_failed_save_returns_dismissible_error(client, session_factory):
    def failing_db():
        db = session_factory()

        def commit():
            raise SQLAlchemyError("disk I/O error")

        db.commit = commit
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = failing_db

    response = client.post("/api/jobs/", json={"company_name": "Apple", "position_name": "Dev"})

    assert response.status_code == 500
    body = response.json()
    assert body["dismissible"] is True
    assert "Failed to create JobApplication" in body["detail"]
