"""
API tests for /api/cover-letters: versioning and AI drafts.
"""

from jobtracker.services import llm


def _save(client, headers, job_id, content="Dear hiring team,", **extra):
    response = client.post(
        "/api/cover-letters", json={"job_id": job_id, "content": content, **extra}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_versions_count_per_job(client, auth_headers, make_job):
    job = make_job()
    other_job = make_job(title="Data Engineer")

    assert _save(client, auth_headers, job["id"])["version"] == 1
    assert _save(client, auth_headers, job["id"], content="Second try")["version"] == 2
    assert _save(client, auth_headers, other_job["id"])["version"] == 1

    letters = client.get("/api/cover-letters", params={"job_id": job["id"]}, headers=auth_headers).json()
    assert [letter["version"] for letter in letters] == [2, 1]
    assert letters[0]["job"]["title"] == "Backend Engineer"


def test_version_continues_after_delete(client, auth_headers, make_job):
    job = make_job()
    _save(client, auth_headers, job["id"])
    second = _save(client, auth_headers, job["id"])
    client.delete(f"/api/cover-letters/{second['id']}", headers=auth_headers)

    # highest remaining is 1, so the next save is 2 again
    assert _save(client, auth_headers, job["id"])["version"] == 2


def test_empty_content_rejected(client, auth_headers, make_job):
    job = make_job()
    response = client.post(
        "/api/cover-letters", json={"job_id": job["id"], "content": "  "}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json() == {"error": "content is required", "kind": "validation_error"}


def test_save_for_foreign_job(client, auth_headers, other_headers, make_job):
    job = make_job()
    response = client.post(
        "/api/cover-letters", json={"job_id": job["id"], "content": "Hi"}, headers=other_headers
    )
    assert response.status_code == 404


def test_update_in_place(client, auth_headers, make_job):
    letter = _save(client, auth_headers, make_job()["id"])
    response = client.put(
        f"/api/cover-letters/{letter['id']}", json={"tone": "creative"}, headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["tone"] == "creative"
    assert data["content"] == "Dear hiring team,"
    assert data["version"] == 1


def test_generate_uses_latest_resume(client, auth_headers, make_job, make_resume, fake_llm):
    job = make_job()
    make_resume(name="Old", raw_text="Old resume")
    make_resume(name="New", raw_text="New resume text")
    model = fake_llm("  Dear Acme team,\n\nI build APIs.  ")

    response = client.post(
        "/api/cover-letters/generate", json={"job_id": job["id"], "tone": "enthusiastic"}, headers=auth_headers
    )
    assert response.status_code == 200
    draft = response.json()
    assert draft["content"] == "Dear Acme team,\n\nI build APIs."
    assert draft["tone"] == "enthusiastic"
    assert draft["job_id"] == job["id"]
    assert set(draft["usage"]) == {"input_tokens", "output_tokens"}
    assert model.i == 1

    # nothing saved until the user posts it back
    assert client.get("/api/cover-letters", headers=auth_headers).json() == []


def test_generate_without_resume(client, auth_headers, make_job, monkeypatch):
    def unreachable(**kwargs):
        raise AssertionError("model should not be called")

    monkeypatch.setattr(llm, "get_llm", unreachable)
    job = make_job()

    response = client.post("/api/cover-letters/generate", json={"job_id": job["id"]}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No resume found. Please add your resume first."


def test_deleting_job_removes_letters(client, auth_headers, make_job):
    job = make_job()
    letter = _save(client, auth_headers, job["id"])
    client.delete(f"/api/jobs/{job['id']}", headers=auth_headers)
    assert client.get(f"/api/cover-letters/{letter['id']}", headers=auth_headers).status_code == 404
