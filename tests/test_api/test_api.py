"""
Tests for API

Tests for sidvid/api/
"""

import time

import pytest
from fastapi.testclient import TestClient

from sidvid.api.main import create_app
from sidvid.api.routers import sessions as sessions_router
from sidvid.api.routers import video as video_router


@pytest.fixture
def client(manager):
    sessions_router.limiter.reset()
    video_router.limiter.reset()
    with TestClient(create_app(manager)) as test_client:
        yield test_client


def _new_session(client, name="Noir"):
    response = client.post("/api/sessions", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def _with_story(client, scene_count=3):
    session_id = _new_session(client)
    response = client.post(f"/api/sessions/{session_id}/story", json={"prompt": "a harbor mystery", "scene_count": scene_count})
    assert response.status_code == 200
    return session_id


class TestBasics:
    """Health and session CRUD endpoints."""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "healthy"}
        assert client.get("/").json()["message"] == "SidVid API"

    def test_create_list_get(self, client):
        session_id = _new_session(client)

        listed = client.get("/api/sessions").json()["sessions"]
        fetched = client.get(f"/api/sessions/{session_id}").json()

        assert [s["id"] for s in listed] == [session_id]
        assert fetched["name"] == "Noir"
        assert fetched["current_story"] is None
        assert client.get("/api/sessions/active").json()["session"]["id"] == session_id

    def test_unknown_session_is_404(self, client):
        response = client.get("/api/sessions/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "SessionNotFoundError"
        assert body["message"] == "Session not found"
        assert body["details"] == {"session_id": "missing"}

    def test_delete(self, client):
        session_id = _new_session(client)

        assert client.delete(f"/api/sessions/{session_id}").json() == {"success": True}
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/sessions/{session_id}").status_code == 404

    def test_index_path_is_not_a_session(self, client):
        session_id = _new_session(client)

        assert client.get("/api/sessions/index").status_code == 404
        assert client.delete("/api/sessions/index").status_code == 404
        assert [s["id"] for s in client.get("/api/sessions").json()["sessions"]] == [session_id]

    def test_rename(self, client):
        session_id = _new_session(client)

        renamed = client.patch(f"/api/sessions/{session_id}", json={"name": "Final Cut"})
        blank = client.patch(f"/api/sessions/{session_id}", json={"name": " "})

        assert renamed.json()["name"] == "Final Cut"
        assert blank.status_code == 400
        assert client.get("/api/sessions").json()["sessions"][0]["name"] == "Final Cut"

    def test_switch_active(self, client):
        first = _new_session(client, "A")
        second = _new_session(client, "B")

        assert client.put(f"/api/sessions/active/{second}").json()["id"] == second
        assert client.get("/api/sessions/active").json()["session"]["id"] == second
        assert first != second


class TestStoryEndpoints:
    """Story version endpoints."""

    def test_generate_improve_revert(self, client):
        session_id = _with_story(client)

        improved = client.post(f"/api/sessions/{session_id}/story/improve", json={"prompt": "more rain"})
        assert improved.json()["current_index"] == 1

        history = client.get(f"/api/sessions/{session_id}/story/history").json()
        assert len(history["history"]) == 2

        reverted = client.post(f"/api/sessions/{session_id}/story/revert", json={"index": 0})
        assert reverted.json()["current_index"] == 0
        assert len(client.get(f"/api/sessions/{session_id}/story/history").json()["history"]) == 1

    def test_invalid_revert_is_400(self, client):
        session_id = _with_story(client)

        response = client.post(f"/api/sessions/{session_id}/story/revert", json={"index": 5})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid story index"

    def test_improve_without_story_is_400(self, client):
        session_id = _new_session(client)

        response = client.post(f"/api/sessions/{session_id}/story/improve", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStateError"


class TestElementEndpoints:
    """World element endpoints."""

    def test_enhance_and_image(self, client):
        session_id = _with_story(client)
        characters = client.get(f"/api/sessions/{session_id}/characters").json()["characters"]
        character_id = characters[0]["id"]

        enhanced = client.post(f"/api/sessions/{session_id}/elements/{character_id}/enhance", json={})
        imaged = client.post(f"/api/sessions/{session_id}/elements/{character_id}/images", json={"style": "noir"})
        history = client.get(f"/api/sessions/{session_id}/elements/{character_id}/history").json()["history"]

        assert len(characters) == 3
        assert enhanced.json()["is_enhanced"] is True
        assert imaged.json()["images"][0]["is_active"] is True
        assert "noir" in imaged.json()["images"][0]["revised_prompt"]
        assert imaged.json()["history_length"] == 3
        assert [v["note"] for v in history] == ["created", "enhanced", "image generated"]

    def test_delete_active_image_is_400(self, client):
        session_id = _with_story(client)
        location_id = client.get(f"/api/sessions/{session_id}/locations").json()["locations"][0]["id"]
        image_id = client.post(f"/api/sessions/{session_id}/elements/{location_id}/images", json={}).json()["images"][0]["id"]

        response = client.delete(f"/api/sessions/{session_id}/elements/{location_id}/images/{image_id}")

        assert response.status_code == 400

    def test_custom_element(self, client):
        session_id = _new_session(client)

        created = client.post(
            f"/api/sessions/{session_id}/elements",
            json={"name": "Brass Key", "type": "object", "description": "An old key."}
        )
        missing = client.post(f"/api/sessions/{session_id}/elements/nope/enhance", json={})

        assert created.status_code == 201
        assert created.json()["type"] == "object"
        assert missing.status_code == 404


class TestStoryboardAndVideo:
    """Storyboard editing and the video pipeline over HTTP."""

    def test_storyboard_then_video(self, client):
        session_id = _with_story(client, scene_count=3)
        scenes = client.get(f"/api/sessions/{session_id}/scenes").json()["scenes"]
        for scene in scenes:
            client.post(f"/api/sessions/{session_id}/elements/{scene['id']}/images", json={})

        storyboard = client.post(f"/api/sessions/{session_id}/storyboard").json()
        assert len(storyboard["frames"]) == 3

        patched = client.patch(f"/api/sessions/{session_id}/storyboard/frames/0", json={"duration": 2.5})
        assert patched.json()["duration"] == 2.5
        assert client.patch(f"/api/sessions/{session_id}/storyboard/frames/9", json={"duration": 2}).status_code == 400
        assert client.put(f"/api/sessions/{session_id}/storyboard/order", json={"order": [0, 0, 1]}).status_code == 400
        null_duration = client.patch(f"/api/sessions/{session_id}/storyboard/frames/0", json={"duration": None})
        assert null_duration.status_code == 400
        assert null_duration.json()["message"] == "Invalid frame duration"

        started = client.post(f"/api/video/{session_id}/start").json()
        assert started["status"] == "running"
        assert len(started["jobs"]) == 3

        status = started
        for _ in range(250):
            status = client.get(f"/api/video/{session_id}/status").json()
            if status["status"] == "idle":
                break
            time.sleep(0.02)

        assert status["status"] == "idle"
        assert status["counts"]["completed"] == 3
        assert status["progress"] == 100.0

        manifest = client.get(f"/api/video/{session_id}/manifest").json()
        assert [c["scene_index"] for c in manifest["clips"]] == [0, 1, 2]
        assert manifest["clips"][0]["duration"] == 2.5

        assembled = client.post(f"/api/video/{session_id}/assemble")
        assert assembled.status_code == 200
        assert assembled.json()["video_url"].startswith("mock://video/final-")
        assert client.get(f"/api/sessions/{session_id}").json()["final_video"]["id"] == assembled.json()["id"]

    def test_video_without_storyboard_is_400(self, client):
        session_id = _new_session(client)

        assert client.post(f"/api/video/{session_id}/start").status_code == 400
        assert client.post(f"/api/video/{session_id}/assemble").status_code == 400

    def test_cancel(self, client):
        session_id = _new_session(client)

        response = client.post(f"/api/video/{session_id}/cancel")

        assert response.json()["status"] == "idle"


class TestImportExport:
    """Import and export endpoints."""

    def test_invalid_import_is_422(self, client):
        response = client.post("/api/sessions/import", json={"id": "x"})

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidSessionDataError"

    def test_export_import(self, client):
        session_id = _with_story(client)
        exported = client.get(f"/api/sessions/{session_id}/export").json()

        response = client.post("/api/sessions/import", json=exported)

        assert response.status_code == 201
        assert response.json()["id"] != session_id
        assert response.json()["story_count"] == 1

    def test_bulk_export_import(self, client):
        _with_story(client)
        _new_session(client, "Second")
        exported = client.get("/api/sessions/export-all").json()

        response = client.post("/api/sessions/import-all", json=exported)

        assert response.status_code == 201
        assert len(response.json()["sessions"]) == 2
        assert len(client.get("/api/sessions").json()["sessions"]) == 4

    def test_delete_all(self, client):
        _new_session(client)

        assert client.delete("/api/sessions").json() == {"success": True}
        assert client.get("/api/sessions").json()["sessions"] == []
