from app.config import settings

from conftest import connection_error

CONVERSATION = {
    "messages": [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Say hello back"},
    ]
}


def test_chat_streams_provider_text(client, fake_openai):
    response = client.post("/api/chat", json=CONVERSATION)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Hello there"

    call = fake_openai.completions.calls[0]
    assert call["stream"] is True
    assert call["model"] == settings.llm_model_name
    assert call["messages"] == CONVERSATION["messages"]
    assert fake_openai.completions.streams[0].closed


def test_missing_key_fails_before_any_provider_call(client, fake_openai, monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", None)

    response = client.post("/api/chat", json=CONVERSATION)

    assert response.status_code == 500
    assert response.json() == {"detail": "OPENAI_API_KEY is not set in the environment"}
    assert fake_openai.constructed == 0
    assert fake_openai.completions.calls == []


def test_failure_opening_stream_is_reported_as_bad_gateway(client, fake_openai):
    fake_openai.completions.open_error = connection_error("chat/completions")

    response = client.post("/api/chat", json=CONVERSATION)

    assert response.status_code == 502
    assert response.json() == {"detail": "Upstream provider error"}


def test_mid_stream_failure_ends_body_with_marker(client, fake_openai):
    fake_openai.completions.deltas = ["Once upon", " a time"]
    fake_openai.completions.stream_error = connection_error("chat/completions")

    response = client.post("/api/chat", json=CONVERSATION)

    assert response.status_code == 200
    assert response.text == "Once upon a time" + settings.stream_error_marker
    assert len(fake_openai.completions.calls) == 1


def test_unknown_role_is_rejected(client, fake_openai):
    response = client.post("/api/chat", json={"messages": [{"role": "tool", "content": "{}"}]})

    assert response.status_code == 422
    assert fake_openai.completions.calls == []
