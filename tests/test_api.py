"""API tests: auth gate, validation, generation pipelines and persistence."""
import json
from unittest.mock import AsyncMock

import pytest

from cardforge.core.errors import GenerationError
from cardforge.core.security import create_access_token
from cardforge.dependencies import get_store
from cardforge.services.store import Store

from conftest import flashcards_json, quiz_items, recommendations_json


def create_topic(client, headers, llm, topic: str = "Photosynthesis") -> dict:
    llm.queue(flashcards_json())
    resp = client.post("/api/topics", json={"topic": topic}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def orphan_topic(client, headers, llm, topic: str = "Mitochondria") -> str:
    """A topic whose flashcard generation failed, so it has no cards."""
    llm.queue("no json here")
    resp = client.post("/api/topics", json={"topic": topic}, headers=headers)
    assert resp.status_code == 500
    topics = client.get("/api/topics", headers=headers).json()["topics"]
    return next(t["id"] for t in topics if t["topic"] == topic)


# ---------- auth gate ----------

PROTECTED = [
    ("post", "/api/topics", {"topic": "Photosynthesis"}),
    ("get", "/api/topics", None),
    ("get", "/api/flashcards/some-topic", None),
    ("post", "/api/quizzes/generate", {"topicId": "some-topic"}),
    ("post", "/api/progress/update", {"topicId": "some-topic", "score": 3}),
    ("get", "/api/progress", None),
    ("get", "/api/recommendations/generate", None),
    ("get", "/api/recommendations", None),
]


@pytest.fixture
def store_spy(app):
    spy = AsyncMock(spec=Store)
    app.dependency_overrides[get_store] = lambda: spy
    yield spy
    app.dependency_overrides.clear()


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_missing_token_is_rejected_before_any_call(client, llm, store_spy, method, path, body) -> None:
    resp = client.request(method.upper(), path, json=body)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Missing authorization token"}
    assert store_spy.mock_calls == []
    assert llm.prompts == []


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_invalid_token_is_rejected_before_any_call(client, llm, store_spy, method, path, body) -> None:
    headers = {"Authorization": "Bearer not-a-real-token"}
    resp = client.request(method.upper(), path, json=body, headers=headers)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid authorization token"}
    assert store_spy.mock_calls == []
    assert llm.prompts == []


def test_expired_and_foreign_tokens_are_invalid(client, settings) -> None:
    expired = create_access_token(
        "user-1", settings=settings.model_copy(update={"access_token_expire_minutes": -5})
    )
    foreign = create_access_token(
        "user-1", settings=settings.model_copy(update={"auth_jwt_secret": "someone-else"})
    )
    for token in (expired, foreign):
        resp = client.get("/api/topics", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid authorization token"


def test_non_bearer_scheme_counts_as_missing(client) -> None:
    resp = client.get("/api/topics", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Missing authorization token"


# ---------- topics ----------

def test_photosynthesis_end_to_end(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm, "Photosynthesis")

    assert data["topicId"]
    assert len(data["flashcards"]) == 5
    assert all(card["topic_id"] == data["topicId"] for card in data["flashcards"])
    assert data["flashcards"][0]["question"] == "Question 0"
    assert count_rows("flashcards", "topic_id = :t", t=data["topicId"]) == 5
    assert count_rows("topics") == 1


@pytest.mark.parametrize("topic", ["", "ab", "   x  ", "z" * 101, 7])
def test_invalid_topic_is_400_without_writes(client, auth_headers, llm, store_spy, topic) -> None:
    resp = client.post("/api/topics", json={"topic": topic}, headers=auth_headers)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert store_spy.mock_calls == []
    assert llm.prompts == []


def test_topic_text_is_trimmed(client, auth_headers, llm) -> None:
    create_topic(client, auth_headers, llm, "   Cell biology   ")
    topics = client.get("/api/topics", headers=auth_headers).json()["topics"]
    assert [t["topic"] for t in topics] == ["Cell biology"]


def test_malformed_body_is_400(client, auth_headers) -> None:
    resp = client.post(
        "/api/topics",
        content=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"


def test_generation_failure_keeps_the_topic(client, auth_headers, llm, count_rows) -> None:
    llm.queue("I cannot answer in JSON today")
    resp = client.post("/api/topics", json={"topic": "Photosynthesis"}, headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json()["error"] == "Error submitting topic and generating flashcards"
    assert "details" in resp.json()
    assert count_rows("topics") == 1
    assert count_rows("flashcards") == 0


def test_llm_transport_error_is_500(client, auth_headers, llm) -> None:
    llm.queue(GenerationError("LLM completion failed", details="429 rate limited"))
    resp = client.post("/api/topics", json={"topic": "Photosynthesis"}, headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Error submitting topic and generating flashcards",
        "details": "LLM completion failed",
    }


def test_topics_are_listed_per_user(client, auth_headers, other_headers, llm) -> None:
    create_topic(client, auth_headers, llm, "Photosynthesis")
    assert client.get("/api/topics", headers=other_headers).json() == {"topics": []}


# ---------- flashcards ----------

def test_flashcards_are_returned_without_regenerating(client, auth_headers, llm) -> None:
    data = create_topic(client, auth_headers, llm)
    resp = client.get(f"/api/flashcards/{data['topicId']}", headers=auth_headers)

    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["flashcards"]] == [c["id"] for c in data["flashcards"]]
    assert len(llm.prompts) == 1


def test_flashcards_are_generated_on_first_fetch(client, auth_headers, llm, count_rows) -> None:
    topic_id = orphan_topic(client, auth_headers, llm)
    llm.queue(flashcards_json(4))

    resp = client.get(f"/api/flashcards/{topic_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert len(resp.json()["flashcards"]) == 4
    assert "Mitochondria" in llm.prompts[-1]

    again = client.get(f"/api/flashcards/{topic_id}", headers=auth_headers)
    assert len(again.json()["flashcards"]) == 4
    assert count_rows("flashcards", "topic_id = :t", t=topic_id) == 4


def test_flashcards_of_unknown_or_foreign_topic_are_404(client, auth_headers, other_headers, llm) -> None:
    data = create_topic(client, auth_headers, llm)
    for headers, topic_id in ((auth_headers, "missing"), (other_headers, data["topicId"])):
        resp = client.get(f"/api/flashcards/{topic_id}", headers=headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Topic not found"}


def test_flashcard_generation_error_is_500(client, auth_headers, llm) -> None:
    topic_id = orphan_topic(client, auth_headers, llm)
    llm.queue("[]")
    resp = client.get(f"/api/flashcards/{topic_id}", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Error generating flashcards"


# ---------- quizzes ----------

def test_generate_quiz(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm)
    llm.queue(json.dumps(quiz_items()))

    resp = client.post("/api/quizzes/generate", json={"topicId": data["topicId"]}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["quizId"]
    assert len(body["quiz"]) == 5
    assert all(len(q["options"]) == 4 for q in body["quiz"])
    assert "Question 0" in llm.prompts[-1]
    assert count_rows("quizzes") == 1


def test_each_generation_appends_a_quiz(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm)
    llm.queue(json.dumps(quiz_items()), json.dumps(quiz_items(3)))
    first = client.post("/api/quizzes/generate", json={"topicId": data["topicId"]}, headers=auth_headers)
    second = client.post("/api/quizzes/generate", json={"topicId": data["topicId"]}, headers=auth_headers)

    assert first.json()["quizId"] != second.json()["quizId"]
    assert count_rows("quizzes", "topic_id = :t", t=data["topicId"]) == 2


def test_quiz_with_wrong_option_count_is_not_stored(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm)
    items = quiz_items()
    items[3]["options"] = items[3]["options"][:3]
    llm.queue(json.dumps(items))

    resp = client.post("/api/quizzes/generate", json={"topicId": data["topicId"]}, headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Error generating quiz"
    assert count_rows("quizzes") == 0


def test_quiz_without_flashcards_is_404(client, auth_headers, llm) -> None:
    topic_id = orphan_topic(client, auth_headers, llm)
    resp = client.post("/api/quizzes/generate", json={"topicId": topic_id}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "No flashcards found for this topic"}


@pytest.mark.parametrize("body", [{}, {"topicId": 12}, {"topicId": ""}, ["t"]])
def test_quiz_request_validation(client, auth_headers, store_spy, body) -> None:
    resp = client.post("/api/quizzes/generate", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert store_spy.mock_calls == []


# ---------- progress ----------

def test_progress_upsert_keeps_one_row(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm)
    body = {"topicId": data["topicId"], "score": 80}

    first = client.post("/api/progress/update", json=body, headers=auth_headers)
    second = client.post("/api/progress/update", json=body, headers=auth_headers)

    assert first.status_code == second.status_code == 200
    p1, p2 = first.json()["progress"], second.json()["progress"]
    assert p1["id"] == p2["id"]
    assert p2["updated_at"] >= p1["updated_at"]
    assert count_rows("progress", "topic_id = :t", t=data["topicId"]) == 1

    listed = client.get("/api/progress", headers=auth_headers).json()["progress"]
    assert len(listed) == 1
    assert listed[0]["updated_at"] == p2["updated_at"]
    assert listed[0]["score"] == 80


def test_progress_last_write_wins(client, auth_headers, llm) -> None:
    data = create_topic(client, auth_headers, llm)
    client.post("/api/progress/update", json={"topicId": data["topicId"], "score": 20}, headers=auth_headers)
    resp = client.post("/api/progress/update", json={"topicId": data["topicId"], "score": 60.5}, headers=auth_headers)
    assert resp.json()["progress"]["score"] == 60.5


@pytest.mark.parametrize("body", [{"topicId": "t"}, {"topicId": "t", "score": "10"}, {"score": 10}])
def test_progress_validation(client, auth_headers, store_spy, body) -> None:
    resp = client.post("/api/progress/update", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid topicId or score"}
    assert store_spy.mock_calls == []


@pytest.mark.parametrize("score", ["NaN", "Infinity", "-Infinity"])
def test_progress_rejects_non_finite_scores(client, auth_headers, store_spy, score) -> None:
    raw = '{"topicId": "t", "score": ' + score + "}"
    resp = client.post(
        "/api/progress/update",
        content=raw,
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid topicId or score"}
    assert store_spy.mock_calls == []


def test_progress_for_foreign_topic_is_404(client, auth_headers, other_headers, llm) -> None:
    data = create_topic(client, auth_headers, llm)
    resp = client.post(
        "/api/progress/update", json={"topicId": data["topicId"], "score": 1}, headers=other_headers
    )
    assert resp.status_code == 404


# ---------- recommendations ----------

def test_generate_recommendations(client, auth_headers, llm, count_rows) -> None:
    data = create_topic(client, auth_headers, llm, "Photosynthesis")
    client.post("/api/progress/update", json={"topicId": data["topicId"], "score": 40}, headers=auth_headers)
    llm.queue(recommendations_json())

    resp = client.get("/api/recommendations/generate", headers=auth_headers)
    assert resp.status_code == 200
    recs = resp.json()["recommendations"]
    assert len(recs) == 3
    assert recs[0] == {"title": "Review the basics", "description": "Revisit the flashcards you missed."}
    assert "Photosynthesis" in llm.prompts[-1]
    assert count_rows("recommendations") == 1

    stored = client.get("/api/recommendations", headers=auth_headers).json()["recommendations"]
    assert stored == recs


def test_recommendations_empty_before_generation(client, auth_headers) -> None:
    assert client.get("/api/recommendations", headers=auth_headers).json() == {"recommendations": []}


def test_recommendation_failure_is_500(client, auth_headers, llm, count_rows) -> None:
    llm.queue('{"title": "only one"}')
    resp = client.get("/api/recommendations/generate", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Error generating recommendations"
    assert count_rows("recommendations") == 0


# ---------- method dispatch ----------

@pytest.mark.parametrize(
    "method, path, allowed",
    [
        ("GET", "/api/quizzes/generate", {"POST"}),
        ("GET", "/api/progress/update", {"POST"}),
        ("POST", "/api/flashcards/abc", {"GET"}),
        ("POST", "/api/recommendations/generate", {"GET"}),
        ("DELETE", "/api/topics", {"GET", "POST"}),
        ("PUT", "/api/recommendations", {"GET"}),
    ],
)
def test_wrong_method_is_405_with_allow(client, auth_headers, method, path, allowed) -> None:
    resp = client.request(method, path, headers=auth_headers)
    assert resp.status_code == 405
    assert {m.strip() for m in resp.headers["allow"].split(",")} == allowed
    assert resp.json() == {"error": "Method Not Allowed"}


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
