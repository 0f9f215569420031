import pytest
from google.genai import errors

from cookka.services.gemini_service import CHAT_FALLBACK_TEXT
from tests.fakes import FakeGeminiClient, gemini_response


def test_chat_happy_path(settings, make_client):
    fake = FakeGeminiClient(gemini_response("안녕하세요"))
    client = make_client(settings, fake)

    r = client.post("/api/gemini/chat", json={"message": "hi"})

    assert r.status_code == 200
    assert r.json() == {"text": "안녕하세요"}
    assert len(fake.calls) == 1
    assert fake.calls[0]["model"] == settings.gemini_chat_model
    assert fake.calls[0]["config"].temperature == 0.7


def test_chat_history_roles_are_normalized_and_message_appended(settings, make_client):
    fake = FakeGeminiClient(gemini_response("ok"))
    client = make_client(settings, fake)

    r = client.post(
        "/api/gemini/chat",
        json={
            "message": "bye",
            "conversationHistory": [
                {"role": "user", "text": "hi"},
                {"role": "bot", "text": "hello"},
            ],
        },
    )

    assert r.status_code == 200
    contents = fake.calls[0]["contents"]
    assert [c.role for c in contents] == ["user", "model", "user"]
    assert [c.parts[0].text for c in contents] == ["hi", "hello", "bye"]


@pytest.mark.parametrize(
    "body",
    [{}, {"message": ""}, {"message": 42}, {"message": None}, ["hi"]],
)
def test_chat_requires_message(settings, make_client, body):
    fake = FakeGeminiClient()
    client = make_client(settings, fake)

    r = client.post("/api/gemini/chat", json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "message is required"}
    assert fake.calls == []


def test_chat_without_api_key_makes_no_upstream_call(unconfigured_settings, make_client):
    fake = FakeGeminiClient(gemini_response("unused"))
    client = make_client(unconfigured_settings, fake)

    r = client.post("/api/gemini/chat", json={"message": "hi"})

    assert r.status_code == 500
    assert r.json() == {"error": "Gemini API key is not configured"}
    assert fake.calls == []


def test_chat_propagates_upstream_status_without_body(settings, make_client):
    upstream = errors.ClientError(
        429,
        {"error": {"code": 429, "message": "quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
    )
    client = make_client(settings, FakeGeminiClient(upstream))

    r = client.post("/api/gemini/chat", json={"message": "hi"})

    assert r.status_code == 429
    assert r.json() == {"error": "채팅 처리 실패"}


def test_chat_missing_candidate_uses_fallback_text(settings, make_client):
    client = make_client(settings, FakeGeminiClient(gemini_response(None)))

    r = client.post("/api/gemini/chat", json={"message": "hi"})

    assert r.status_code == 200
    assert r.json() == {"text": CHAT_FALLBACK_TEXT}
    assert CHAT_FALLBACK_TEXT == "응답을 생성할 수 없습니다."


def test_chat_unexpected_error_is_generic_500(settings, make_client):
    client = make_client(settings, FakeGeminiClient(ConnectionError("boom")))

    r = client.post("/api/gemini/chat", json={"message": "hi"})

    assert r.status_code == 500
    assert r.json() == {"error": "서버 오류가 발생했습니다."}


def test_chat_malformed_json_is_generic_500(settings, make_client):
    client = make_client(settings, FakeGeminiClient())

    r = client.post(
        "/api/gemini/chat",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 500
    assert r.json() == {"error": "서버 오류가 발생했습니다."}


def test_chat_history_without_string_role_is_sent_as_model(settings, make_client):
    fake = FakeGeminiClient(gemini_response("ok"))
    client = make_client(settings, fake)

    r = client.post(
        "/api/gemini/chat",
        json={
            "message": "bye",
            "conversationHistory": [
                {"text": "hello"},
                {"role": None, "text": "x"},
                {"role": 1, "text": "y"},
            ],
        },
    )

    assert r.status_code == 200
    contents = fake.calls[0]["contents"]
    assert [c.role for c in contents] == ["model", "model", "model", "user"]
