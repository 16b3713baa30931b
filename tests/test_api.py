import csv
import io

import httpx
import pytest

from data.sample_questions import seed_items


async def create_question(http, **overrides):
    body = {
        "type": "casestudy",
        "section": "Python",
        "title": "Name the pattern",
        "acceptedAnswers": ["singleton"],
        "points": 10,
        "order": 1,
        **overrides,
    }
    resp = await http.post("/questions", json=body)
    assert resp.status_code == 201
    return resp.json()["id"]


async def register(http, name="Ada", student_id="S1", started_at=1_000, **extra):
    resp = await http.post("/participants", json={
        "name": name,
        "studentId": student_id,
        "section": "Python",
        "startedAt": started_at,
        **extra,
    })
    assert resp.status_code == 201
    return resp.json()["id"]


async def last_updated(http):
    return (await http.get("/metadata/questions")).json().get("lastUpdated")


class TestSettings:
    @pytest.mark.asyncio
    async def test_missing_item_is_empty_object(self, http):
        resp = await http.get("/settings/config")
        assert resp.status_code == 200
        assert resp.json() == {}

    @pytest.mark.asyncio
    async def test_put_replaces_whole_item(self, http):
        await http.put("/settings/config", json={"isQuizActive": False, "note": "x"})
        resp = await http.put("/settings/config", json={"isQuizActive": True})

        assert resp.json() == {"success": True}
        assert (await http.get("/settings/config")).json() == {"configKey": "config", "isQuizActive": True}

    @pytest.mark.asyncio
    async def test_metadata_round_trip(self, http):
        await http.put("/metadata/questions", json={"lastUpdated": 42})
        assert await last_updated(http) == 42


class TestQuestions:
    @pytest.mark.asyncio
    async def test_create_and_list(self, http):
        question_id = await create_question(http)

        resp = await http.get("/questions")

        assert resp.status_code == 200
        assert resp.json() == [{
            "id": question_id,
            "type": "casestudy",
            "section": "Python",
            "title": "Name the pattern",
            "description": "",
            "points": 10,
            "order": 1,
            "scenario": "",
            "acceptedAnswers": ["singleton"],
        }]

    @pytest.mark.asyncio
    async def test_list_sorted_by_order(self, http):
        await create_question(http, title="third", order=3)
        await create_question(http, title="first", order=1)
        await create_question(http, title="second", order=2)

        titles = [q["title"] for q in (await http.get("/questions")).json()]
        assert titles == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_create_with_unknown_type_rejected(self, http):
        resp = await http.post("/questions", json={"type": "essay", "title": "x"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    @pytest.mark.asyncio
    async def test_every_mutation_moves_marker(self, http):
        assert await last_updated(http) is None

        question_id = await create_question(http)
        after_create = await last_updated(http)
        assert after_create is not None

        await http.put("/metadata/questions", json={"lastUpdated": 0})
        await http.put(f"/questions/{question_id}", json={"title": "Renamed"})
        assert await last_updated(http) > 0

        await http.put("/metadata/questions", json={"lastUpdated": 0})
        await http.delete(f"/questions/{question_id}")
        assert await last_updated(http) > 0

    @pytest.mark.asyncio
    async def test_update(self, http):
        question_id = await create_question(http)

        resp = await http.put(f"/questions/{question_id}", json={"title": "Renamed", "points": 25})

        assert resp.json() == {"success": True}
        question = (await http.get("/questions")).json()[0]
        assert question["title"] == "Renamed"
        assert question["points"] == 25

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, http):
        question_id = await create_question(http)

        resp = await http.put(f"/questions/{question_id}", json={})

        assert resp.status_code == 400
        assert resp.json() == {"error": "No fields to update"}

    @pytest.mark.asyncio
    async def test_update_outside_allow_list_rejected(self, http):
        question_id = await create_question(http)

        resp = await http.put(f"/questions/{question_id}", json={"title": "ok", "createdBy": "mallory"})

        assert resp.status_code == 400
        assert (await http.get("/questions")).json()[0]["title"] == "Name the pattern"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "section", "points", "order", "type"])
    async def test_null_on_required_field_rejected(self, http, field):
        question_id = await create_question(http)

        resp = await http.put(f"/questions/{question_id}", json={field: None})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request body"
        assert (await http.get("/questions")).json()[0]["title"] == "Name the pattern"

    @pytest.mark.asyncio
    async def test_null_on_optional_field_allowed(self, http):
        question_id = await create_question(http)
        resp = await http.put(f"/questions/{question_id}", json={"scenario": None})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_update_missing_question(self, http):
        resp = await http.put("/questions/nope", json={"title": "x"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Question not found"}

    @pytest.mark.asyncio
    async def test_delete(self, http):
        question_id = await create_question(http)

        resp = await http.delete(f"/questions/{question_id}")

        assert resp.json() == {"success": True}
        assert (await http.get("/questions")).json() == []


class TestBatch:
    @pytest.mark.asyncio
    async def test_seed_assigns_fresh_ids(self, http):
        items = seed_items()

        resp = await http.post("/questions/batch", json={"action": "seed", "items": items})

        assert resp.json() == {"success": True, "created": len(items)}
        questions = (await http.get("/questions")).json()
        assert len(questions) == len(items)
        assert len({q["id"] for q in questions}) == len(items)
        assert not {q["id"] for q in questions} & {"syn-1", "mcq-1", "cs-1"}

    @pytest.mark.asyncio
    async def test_bulk_import(self, http):
        items = [
            {"type": "mcq", "section": "C", "options": ["a", "b"], "correctOptionIndex": 0, "order": 1},
            {"type": "mcq", "section": "C", "options": ["c", "d"], "correctOptionIndex": 1, "order": 2},
        ]

        resp = await http.post("/questions/batch", json={"action": "bulkImport", "items": items})

        assert resp.json()["created"] == 2
        assert [q["section"] for q in (await http.get("/questions")).json()] == ["C", "C"]

    @pytest.mark.asyncio
    async def test_delete_selected(self, http):
        keep = await create_question(http, order=1)
        drop = [await create_question(http, order=i) for i in (2, 3)]

        resp = await http.post("/questions/batch", json={"action": "deleteSelected", "ids": drop})

        assert resp.json() == {"success": True, "deleted": 2}
        assert [q["id"] for q in (await http.get("/questions")).json()] == [keep]

    @pytest.mark.asyncio
    async def test_delete_selected_counts_existing_rows(self, http, app):
        app.state.settings.BATCH_WRITE_LIMIT = 2
        ids = [await create_question(http, order=i) for i in (1, 2, 3)]

        resp = await http.post("/questions/batch", json={
            "action": "deleteSelected",
            "ids": ids + ["missing-1", "missing-2"],
        })

        assert resp.json() == {"success": True, "deleted": 3}
        assert (await http.get("/questions")).json() == []

    @pytest.mark.asyncio
    async def test_renumber(self, http):
        a = await create_question(http, order=10)
        b = await create_question(http, order=20)

        resp = await http.post("/questions/batch", json={
            "action": "renumber",
            "updates": [{"id": a, "order": 2}, {"id": b, "order": 1}],
        })

        assert resp.json() == {"success": True}
        assert [(q["id"], q["order"]) for q in (await http.get("/questions")).json()] == [(b, 1), (a, 2)]

    @pytest.mark.asyncio
    async def test_move_section(self, http):
        a = await create_question(http, order=1)

        await http.post("/questions/batch", json={"action": "moveSection", "ids": [a], "section": "Common"})

        assert (await http.get("/questions")).json()[0]["section"] == "Common"

    @pytest.mark.asyncio
    async def test_move_section_requires_section(self, http):
        resp = await http.post("/questions/batch", json={"action": "moveSection", "ids": ["x"]})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_action(self, http):
        resp = await http.post("/questions/batch", json={"action": "explode"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unknown batch action: explode"}

    @pytest.mark.asyncio
    async def test_batch_moves_marker(self, http):
        await http.post("/questions/batch", json={"action": "seed", "items": seed_items()[:1]})
        assert await last_updated(http) is not None


class TestParticipants:
    @pytest.mark.asyncio
    async def test_register_and_submit(self, http):
        participant_id = await register(http)

        resp = await http.put(f"/participants/{participant_id}", json={
            "answers": [{"questionId": "q1", "questionType": "mcq", "userAnswer": "1", "isCorrect": True, "pointsAwarded": 5}],
            "score": 5,
            "totalPoints": 10,
            "completedAt": 61_000,
            "timeTaken": 60,
            "submitted": True,
        })

        assert resp.json() == {"success": True}
        participant = (await http.get("/participants")).json()[0]
        assert participant["id"] == participant_id
        assert participant["studentId"] == "S1"
        assert participant["submitted"] is True
        assert participant["score"] == 5
        assert participant["answers"][0]["questionId"] == "q1"

    @pytest.mark.asyncio
    async def test_register_requires_details(self, http):
        resp = await http.post("/participants", json={"name": "", "studentId": "S1", "startedAt": 1})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_update_outside_allow_list_rejected(self, http):
        participant_id = await register(http)
        resp = await http.put(f"/participants/{participant_id}", json={"id": "other"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, http):
        participant_id = await register(http)
        resp = await http.put(f"/participants/{participant_id}", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "No fields to update"}

    @pytest.mark.asyncio
    async def test_submitted_result_is_final(self, http):
        participant_id = await register(http)
        resp = await http.put(f"/participants/{participant_id}", json={"submitted": True, "score": 10})
        assert resp.status_code == 200

        reverted = await http.put(f"/participants/{participant_id}", json={"score": 0})
        resubmitted = await http.put(f"/participants/{participant_id}", json={"submitted": True, "score": 50})

        assert reverted.status_code == 409
        assert reverted.json() == {"error": "Participant has already submitted"}
        assert resubmitted.status_code == 409
        participant = (await http.get("/participants")).json()[0]
        assert participant["submitted"] is True
        assert participant["score"] == 10

    @pytest.mark.asyncio
    async def test_unsubmit_rejected(self, http):
        participant_id = await register(http)

        resp = await http.put(f"/participants/{participant_id}", json={"submitted": False, "score": 0})

        assert resp.status_code == 400
        assert (await http.get("/participants")).json()[0]["submitted"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "studentId", "score", "totalPoints", "answers", "submitted"])
    async def test_null_on_required_field_rejected(self, http, field):
        participant_id = await register(http)

        resp = await http.put(f"/participants/{participant_id}", json={field: None})

        assert resp.status_code == 400
        assert (await http.get("/participants")).json()[0]["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_submitted_participants_still_cleared(self, http):
        participant_id = await register(http)
        await http.put(f"/participants/{participant_id}", json={"submitted": True})

        resp = await http.delete("/participants")

        assert resp.json() == {"success": True, "deleted": 1}

    @pytest.mark.asyncio
    async def test_update_missing_participant(self, http):
        resp = await http.put("/participants/nope", json={"score": 1})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_all_reports_count(self, http, app):
        app.state.settings.BATCH_WRITE_LIMIT = 2
        for i in range(5):
            await register(http, student_id=f"S{i}")

        resp = await http.delete("/participants")

        assert resp.json() == {"success": True, "deleted": 5}
        assert (await http.get("/participants")).json() == []


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ranking_and_csv(self, http):
        slow = await register(http, name="Slow", student_id="S1", started_at=0)
        fast = await register(http, name="Fast", student_id="S2", started_at=0)
        await register(http, name="Idle", student_id="S3", started_at=0)
        await http.put(f"/participants/{slow}", json={"score": 10, "totalPoints": 20, "completedAt": 90_000, "submitted": True})
        await http.put(f"/participants/{fast}", json={"score": 10, "totalPoints": 20, "completedAt": 30_000, "submitted": True})

        board = (await http.get("/leaderboard")).json()
        assert [(row["rank"], row["name"]) for row in board] == [(1, "Fast"), (2, "Slow"), (3, "Idle")]
        assert board[0]["timeTakenSeconds"] == 30

        submitted = (await http.get("/leaderboard", params={"submitted_only": "true"})).json()
        assert [row["name"] for row in submitted] == ["Fast", "Slow"]

        resp = await http.get("/leaderboard.csv")
        assert resp.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0] == ["Rank", "Name", "Student ID", "Score", "Total Points", "Time Taken (s)"]
        assert rows[1:] == [["1", "Fast", "S2", "10", "20", "30"], ["2", "Slow", "S1", "10", "20", "90"]]


class TestRouting:
    @pytest.mark.asyncio
    async def test_unmatched_route(self, http):
        resp = await http.get("/nothing/here")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found", "path": "/nothing/here", "method": "GET"}

    @pytest.mark.asyncio
    async def test_unsupported_method_is_not_found(self, http):
        resp = await http.patch("/questions")
        assert resp.status_code == 404
        assert resp.json()["method"] == "PATCH"

    @pytest.mark.asyncio
    async def test_stage_prefix_is_stripped(self, http):
        await create_question(http)

        resp = await http.get("/prod/questions")

        assert resp.status_code == 200
        assert len(resp.json()) == 1

    @pytest.mark.asyncio
    async def test_cors_preflight(self, http):
        resp = await http.options("/questions", headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "POST",
        })
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, app, monkeypatch):
        from services.question_service import QuestionService

        async def boom(self):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(QuestionService, "list_questions", boom)
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get("/questions")

        assert resp.status_code == 500
        assert resp.json() == {"error": "database unavailable"}
