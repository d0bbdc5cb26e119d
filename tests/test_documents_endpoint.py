from app.config import settings


def ingest(client, texts):
    response = client.post("/api/documents", json={"texts": texts})
    assert response.status_code == 200
    return response.json()


def test_ingest_returns_created_documents(client):
    body = ingest(client, ["Hello world", "Bye bye", "What's this?"])

    assert body["count"] == 3
    assert [doc["content"] for doc in body["documents"]] == ["Hello world", "Bye bye", "What's this?"]
    assert all(isinstance(doc["id"], int) for doc in body["documents"])


def test_search_without_score(client):
    ingest(client, ["Hello world", "Bye bye", "What's this?"])

    response = client.post("/api/search", json={"query": "Hello world", "k": 1})

    assert response.status_code == 200
    (hit,) = response.json()["results"]
    assert hit["document"]["content"] == "Hello world"
    assert hit["score"] is None


def test_search_with_score_and_filter_override(client):
    ingest(client, ["Hello world", "Bye bye", "What's this?"])

    response = client.post(
        "/api/search",
        json={"query": "Hello world", "k": 2, "filter": {"content": {"equals": "Bye bye"}}, "with_score": True},
    )

    assert response.status_code == 200
    (hit,) = response.json()["results"]
    assert hit["document"]["content"] == "Bye bye"
    assert isinstance(hit["score"], float)


def test_configured_default_filter_applies_to_search(client, monkeypatch):
    ingest(client, ["Hello world", "Bye bye"])
    monkeypatch.setattr(settings, "vector_default_filter", {"content": "Bye bye"})

    response = client.post("/api/search", json={"query": "Hello world", "k": 5})

    assert [hit["document"]["content"] for hit in response.json()["results"]] == ["Bye bye"]


def test_invalid_filter_is_a_bad_request(client):
    response = client.post("/api/search", json={"query": "Hello", "filter": {"nope": 1}})

    assert response.status_code == 400
    assert "nope" in response.json()["detail"]


def test_embedding_failure_is_bad_gateway_and_leaves_no_documents(client, fake_openai):
    fake_openai.embeddings.fail = True

    response = client.post("/api/documents", json={"texts": ["Hello world"]})
    assert response.status_code == 502

    fake_openai.embeddings.fail = False
    search = client.post("/api/search", json={"query": "Hello world", "k": 5})
    assert search.json()["results"] == []


def test_empty_ingest_is_rejected(client):
    assert client.post("/api/documents", json={"texts": []}).status_code == 422
