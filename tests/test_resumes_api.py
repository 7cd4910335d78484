"""
API tests for /api/resumes: text and file input, AI analysis and tailoring.
"""

import json

import pytest

from jobtracker.errors import ValidationError
from jobtracker.services.extractor import extract_text

TAILORED = {
    "tailoredResume": "Jane Doe\nPython platform engineer.",
    "matchScore": 82,
    "changes": ["Moved Kubernetes to the top"],
    "missingSkills": ["Terraform"],
    "suggestions": ["Mention on-call experience"],
}


class TestExtractText:
    def test_markdown_is_decoded(self):
        assert extract_text("cv.MD", "# Jane Doe\nEngineer".encode("utf-8")).startswith("# Jane Doe")

    def test_unsupported_extension(self):
        with pytest.raises(ValidationError, match="Supported formats"):
            extract_text("cv.docx", b"PK\x03\x04")

    def test_empty_text_rejected(self):
        with pytest.raises(ValidationError, match="Could not extract text"):
            extract_text("cv.txt", b"   \n ")

    def test_corrupt_pdf(self):
        with pytest.raises(ValidationError, match="Failed to parse PDF"):
            extract_text("cv.pdf", b"definitely not a pdf")


def test_create_requires_name_and_text(client, auth_headers):
    response = client.post("/api/resumes", json={"name": "Main", "raw_text": " "}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Name and resume text are required"


def test_upload_text_file(client, auth_headers):
    response = client.post(
        "/api/resumes/upload",
        files={"file": ("jane.txt", b"Jane Doe\nSenior engineer", "text/plain")},
        data={"name": "Uploaded"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    resume = response.json()
    assert resume["name"] == "Uploaded"
    assert resume["file_name"] == "jane.txt"
    assert resume["raw_text"] == "Jane Doe\nSenior engineer"


def test_upload_unsupported_file(client, auth_headers):
    response = client.post(
        "/api/resumes/upload",
        files={"file": ("jane.docx", b"PK", "application/octet-stream")},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Supported formats: .txt, .md, .pdf", "kind": "validation_error"}


def test_list_newest_first(client, auth_headers, make_resume):
    first = make_resume(name="First")
    second = make_resume(name="Second")
    listing = client.get("/api/resumes", headers=auth_headers).json()
    assert [r["id"] for r in listing] == [second["id"], first["id"]]


def test_analyze_caches_result(client, auth_headers, make_resume, fake_llm):
    resume = make_resume()
    fake_llm(json.dumps({"summary": "Seasoned Python developer", "skills": ["Python", "SQL"]}))

    response = client.post("/api/resumes/analyze", json={"resume_id": resume["id"]}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["skills"] == ["Python", "SQL"]

    stored = client.get(f"/api/resumes/{resume['id']}", headers=auth_headers).json()
    assert stored["parsed"]["summary"] == "Seasoned Python developer"


def test_analyze_provider_failure(client, auth_headers, make_resume, monkeypatch):
    from jobtracker.services import llm

    def broken(**kwargs):
        raise RuntimeError("invalid x-api-key")

    monkeypatch.setattr(llm, "get_llm", broken)
    resume = make_resume()

    response = client.post("/api/resumes/analyze", json={"resume_id": resume["id"]}, headers=auth_headers)
    assert response.status_code == 502
    assert response.json()["kind"] == "external_service_error"

    stored = client.get(f"/api/resumes/{resume['id']}", headers=auth_headers).json()
    assert stored["parsed"] is None


def test_tailor_upserts_per_job(client, auth_headers, make_resume, make_job, fake_llm):
    resume = make_resume()
    job = make_job()
    second = dict(TAILORED, matchScore=91, tailoredResume="Jane Doe\nRevised.")
    fake_llm(json.dumps(TAILORED), "```json\n" + json.dumps(second) + "\n```")

    payload = {"resume_id": resume["id"], "job_id": job["id"]}
    first_result = client.post("/api/resumes/tailor", json=payload, headers=auth_headers).json()
    assert first_result["match_score"] == 82
    assert first_result["missing_skills"] == ["Terraform"]

    second_result = client.post("/api/resumes/tailor", json=payload, headers=auth_headers).json()
    assert second_result["id"] == first_result["id"]

    stored = client.get(f"/api/resumes/{resume['id']}/tailored", headers=auth_headers).json()
    assert len(stored) == 1
    assert stored[0]["match_score"] == 91
    assert stored[0]["tailored_text"] == "Jane Doe\nRevised."
    assert stored[0]["suggestions"] == ["Mention on-call experience"]


def test_tailor_malformed_response(client, auth_headers, make_resume, make_job, fake_llm):
    resume = make_resume()
    job = make_job()
    fake_llm(json.dumps({"matchScore": 50}))

    response = client.post(
        "/api/resumes/tailor", json={"resume_id": resume["id"], "job_id": job["id"]}, headers=auth_headers
    )
    assert response.status_code == 502
    assert response.json()["kind"] == "malformed_external_response"
    assert client.get(f"/api/resumes/{resume['id']}/tailored", headers=auth_headers).json() == []


def test_tailor_foreign_job(client, auth_headers, other_headers, make_resume, make_job):
    job = make_job(headers=other_headers)
    resume = make_resume()
    response = client.post(
        "/api/resumes/tailor", json={"resume_id": resume["id"], "job_id": job["id"]}, headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Job not found"


def test_delete_resume(client, auth_headers, make_resume):
    resume = make_resume()
    assert client.delete(f"/api/resumes/{resume['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/resumes/{resume['id']}", headers=auth_headers).status_code == 404


def test_tailor_overwrites_row_inserted_concurrently(
    client, auth_headers, make_resume, make_job, fake_llm, db_session, monkeypatch
):
    from jobtracker.models import TailoredResume
    from jobtracker.routers import resumes

    resume = make_resume()
    job = make_job()
    db_session.add(TailoredResume(resume_id=resume["id"], job_id=job["id"], tailored_text="From the other request"))
    db_session.commit()

    # the first lookup misses, as if the competing row landed after it
    lookups = []
    real_find = resumes.find_tailored

    def racing_find(db, resume_id, job_id):
        lookups.append(resume_id)
        return None if len(lookups) == 1 else real_find(db, resume_id, job_id)

    monkeypatch.setattr(resumes, "find_tailored", racing_find)
    fake_llm(json.dumps(TAILORED))

    response = client.post(
        "/api/resumes/tailor", json={"resume_id": resume["id"], "job_id": job["id"]}, headers=auth_headers
    )
    assert response.status_code == 200
    assert len(lookups) == 2

    stored = client.get(f"/api/resumes/{resume['id']}/tailored", headers=auth_headers).json()
    assert len(stored) == 1
    assert stored[0]["tailored_text"] == TAILORED["tailoredResume"]
    assert stored[0]["match_score"] == 82
