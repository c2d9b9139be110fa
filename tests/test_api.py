"""
Integration tests for API endpoints
"""
import io

import pytest


class TestHealthEndpoints:
    def test_health_check(self, client):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert "status" in data
        assert "timestamp" in data
        assert data["checks"]["cache"]["backend"] == "memory"
        assert "mock" in data["checks"]["llm"]["providers"]

    def test_metrics_endpoint(self, client):
        """Test metrics endpoint"""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text

    def test_process_time_header(self, client):
        response = client.get("/health")
        assert "x-process-time" in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"


class TestPages:
    def test_landing_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "GhostFrame" in response.text

    def test_module_pages(self, client):
        for path in ("/marketplace", "/quiz-ghost", "/story-spirit"):
            response = client.get(path)
            assert response.status_code == 200
            assert "text/html" in response.headers["content-type"]


class TestAuthEndpoints:
    def test_register_login_and_me(self, client):
        payload = {"email": "Ada@Example.com", "username": "ada", "password": "secret123", "full_name": "Ada L"}
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@example.com"

        response = client.post("/auth/login", json={"email": "ada@example.com", "password": "secret123"})
        assert response.status_code == 200
        tokens = response.json()

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert response.status_code == 200
        assert response.json()["username"] == "ada"

        response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_duplicate_registration(self, client):
        payload = {"email": "dup@example.com", "username": "dupuser", "password": "secret123"}
        assert client.post("/auth/register", json=payload).status_code == 200
        assert client.post("/auth/register", json=payload).status_code == 400

    def test_bad_credentials(self, client):
        response = client.post("/auth/login", json={"email": "nobody@example.com", "password": "nope"})
        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401
        response = client.get("/auth/me", headers={"Authorization": "Bearer invalid.token.here"})
        assert response.status_code == 401


class TestUploadEndpoints:
    def test_upload_text(self, client, sample_content):
        response = client.post("/api/upload/text", json={"text": sample_content, "title": "Plants"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["content_id"].startswith("content_")
        assert data["title"] == "Plants"
        assert data["word_count"] > 0
        assert data["key_topics"]

        response = client.get(f"/api/upload/{data['content_id']}")
        assert response.status_code == 200
        assert "Photosynthesis" in response.json()["data"]["processed_text"]

    def test_upload_text_too_short(self, client):
        response = client.post("/api/upload/text", json={"text": "x" * 40})
        assert response.status_code == 400
        assert "at least 50 characters" in response.json()["detail"]

    def test_upload_file(self, client, sample_content):
        files = {"file": ("notes.txt", io.BytesIO(sample_content.encode("utf-8")), "text/plain")}
        response = client.post("/api/upload", files=files, data={"subject": "Biology", "tags": "plants, energy"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["filename"] == "notes.txt"
        assert data["title"] == "notes"
        assert data["subject"] == "Biology"
        assert data["tags"] == ["plants", "energy"]

    def test_upload_html_strips_markup(self, client, sample_content):
        markup = f"<html><script>alert(1)</script><body><p>{sample_content}</p></body></html>"
        files = {"file": ("page.html", io.BytesIO(markup.encode("utf-8")), "text/html")}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 200
        content_id = response.json()["data"]["content_id"]
        text = client.get(f"/api/upload/{content_id}").json()["data"]["processed_text"]
        assert "<p>" not in text
        assert "alert" not in text

    def test_upload_unsupported_type(self, client):
        files = {"file": ("image.png", io.BytesIO(b"\x89PNG\r\n" * 20), "image/png")}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 415

    def test_upload_too_large(self, client):
        data = b"a" * (10 * 1024 * 1024 + 1)
        files = {"file": ("big.txt", io.BytesIO(data), "text/plain")}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 413

    def test_unknown_content(self, client):
        assert client.get("/api/upload/content_missing").status_code == 404

    def test_list_contents(self, client, sample_content):
        client.post("/api/upload/text", json={"text": sample_content})
        response = client.get("/api/upload")
        assert response.status_code == 200
        assert len(response.json()["data"]) >= 1


class TestQuizEndpoints:
    def test_generate_from_text(self, client, sample_content):
        response = client.post("/api/quiz/generate", json={"content": sample_content, "question_count": 5})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["quiz_id"].startswith("quiz_")
        assert len(data["questions"]) == 5
        assert data["metadata"]["total_points"] == sum(q["points"] for q in data["questions"])
        assert data["execution"]["provider"] == "mock"

    def test_generate_from_uploaded_content(self, client, sample_content):
        content_id = client.post("/api/upload/text", json={"text": sample_content}).json()["data"]["content_id"]
        response = client.post("/api/quiz/generate", json={
            "content_id": content_id,
            "question_count": 3,
            "question_types": ["true_false", "short-answer"],
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["content_id"] == content_id
        assert {q["type"] for q in data["questions"]} <= {"true-false", "short-answer"}

        listed = client.get("/api/quiz", params={"content_id": content_id}).json()["data"]
        assert [q["quiz_id"] for q in listed] == [data["quiz_id"]]

    def test_generate_rejects_short_content(self, client):
        response = client.post("/api/quiz/generate", json={"content": "x" * 40})
        assert response.status_code == 400
        assert "at least 50 characters" in response.json()["detail"]

    def test_generate_requires_source(self, client):
        assert client.post("/api/quiz/generate", json={}).status_code == 400

    def test_generate_unknown_content(self, client):
        response = client.post("/api/quiz/generate", json={"content_id": "content_missing"})
        assert response.status_code == 404

    def test_question_count_is_clamped(self, client, sample_content):
        response = client.post("/api/quiz/generate", json={"content": sample_content, "question_count": 50})
        assert response.status_code == 200
        assert len(response.json()["data"]["questions"]) == 20

    def test_submit_quiz(self, client, sample_content):
        quiz = client.post("/api/quiz/generate", json={
            "content": sample_content, "question_count": 2, "question_types": ["multiple-choice"],
        }).json()["data"]
        first, second = quiz["questions"]
        answers = [
            {"question_id": first["id"], "answer": first["correct_answer"]},
            {"question_id": second["id"], "answer": "definitely wrong"},
        ]
        response = client.post(f"/api/quiz/{quiz['quiz_id']}/submit", json={"answers": answers})
        assert response.status_code == 200
        score = response.json()["data"]["score"]
        assert score["correct"] == 1
        assert score["total"] == 2
        assert score["percentage"] == 50

    def test_unknown_quiz(self, client):
        assert client.get("/api/quiz/quiz_missing").status_code == 404
        assert client.post("/api/quiz/quiz_missing/submit", json={"answers": []}).status_code == 404


class TestStoryEndpoints:
    def test_generate_story(self, client, sample_content):
        response = client.post("/api/story/generate", json={
            "content": sample_content, "genre": "adventure", "audience": "children", "length": "short",
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["story_id"].startswith("story_")
        assert len(data["chapters"]) == 3
        assert data["metadata"]["genre"] == "adventure"
        assert data["metadata"]["word_count"] > 0

        fetched = client.get(f"/api/story/{data['story_id']}").json()["data"]
        assert fetched["title"] == data["title"]

    def test_story_rejects_short_content(self, client):
        response = client.post("/api/story/generate", json={"content": "y" * 80})
        assert response.status_code == 400

    def test_story_rejects_unknown_genre(self, client, sample_content):
        response = client.post("/api/story/generate", json={"content": sample_content, "genre": "western"})
        assert response.status_code == 400

    def test_unknown_story(self, client):
        assert client.get("/api/story/story_missing").status_code == 404


class TestMarketplaceEndpoints:
    def test_list_modules(self, client):
        response = client.get("/api/marketplace/modules")
        assert response.status_code == 200
        ids = {m["id"] for m in response.json()["data"]}
        assert ids == {"quiz-ghost", "story-spirit"}

    def test_search_modules(self, client):
        response = client.get("/api/marketplace/modules", params={"query": "quiz"})
        assert [m["id"] for m in response.json()["data"]] == ["quiz-ghost"]

    def test_featured_and_detail(self, client):
        featured = client.get("/api/marketplace/featured").json()["data"]
        assert all(m["featured"] for m in featured)
        response = client.get("/api/marketplace/modules/story-spirit")
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Story Spirit"
        assert client.get("/api/marketplace/modules/nope").status_code == 404

    def test_execute_module(self, client, sample_content):
        response = client.post("/api/marketplace/modules/quiz-ghost/execute", json={
            "input": {"content": sample_content, "question_count": 3},
        })
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert result["metadata"]["events"] == ["quiz_generated", "content_processed"]
        assert len(result["output"]["questions"]) == 3

    def test_execute_module_validation_failure(self, client):
        response = client.post("/api/marketplace/modules/story-spirit/execute", json={"input": {"content": "short"}})
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is False
        assert result["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("module_id,field,value", [
        ("story-spirit", "characters", [1]),
        ("story-spirit", "setting", 5),
        ("story-spirit", "custom_prompt", ["x"]),
        ("quiz-ghost", "focus_areas", [1]),
        ("quiz-ghost", "subject", 7),
    ])
    def test_execute_rejects_non_text_input(self, client, sample_content, module_id, field, value):
        response = client.post(f"/api/marketplace/modules/{module_id}/execute", json={
            "input": {"content": sample_content, field: value},
        })
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is False
        assert result["error"]["code"] == "VALIDATION_ERROR"

    def test_execute_unknown_module(self, client):
        response = client.post("/api/marketplace/modules/nope/execute", json={"input": {}})
        assert response.status_code == 404


class TestAIEndpoints:
    def test_providers(self, client):
        response = client.get("/api/ai/providers")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["providers"] == ["mock"]
        assert data["default"] == "mock"
