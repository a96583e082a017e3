import pytest
import requests

from lostlink.errors import DimensionMismatch, UpstreamServiceError
from lostlink.integrations.openai import OpenAIClient, parse_analysis
from lostlink.integrations.openai import client as client_module


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status
        self.text = str(payload)

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeTransport:
    def __init__(self):
        self.calls = []
        self.replies = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def transport(monkeypatch):
    t = FakeTransport()
    monkeypatch.setattr(client_module.requests, "post", t.post)
    return t


def _client(**kw):
    kw.setdefault("dimension", 3)
    kw.setdefault("timeout", 4.5)
    return OpenAIClient("sk-test", **kw)


def test_embed_text_posts_with_timeout(transport):
    transport.replies.append(FakeResponse({"data": [{"embedding": [0.1, 0.2, 0.3]}]}))

    vector = _client(base_url="https://llm.test/v1/").embed_text("black wallet")

    assert vector == [0.1, 0.2, 0.3]
    call = transport.calls[0]
    assert call["url"] == "https://llm.test/v1/embeddings"
    assert call["json"] == {"model": "text-embedding-3-small", "input": "black wallet"}
    assert call["headers"] == {"Authorization": "Bearer sk-test"}
    assert call["timeout"] == 4.5


def test_embedding_of_wrong_size_is_rejected(transport):
    transport.replies.append(FakeResponse({"data": [{"embedding": [0.1, 0.2]}]}))
    with pytest.raises(DimensionMismatch) as exc:
        _client().embed_text("black wallet")
    assert (exc.value.left, exc.value.right) == (2, 3)


def test_timeout_is_an_upstream_error(transport):
    transport.replies.append(requests.Timeout("slow"))
    with pytest.raises(UpstreamServiceError) as exc:
        _client().embed_text("black wallet")
    assert exc.value.service == "embedding"


def test_http_error_carries_api_details(transport):
    transport.replies.append(
        FakeResponse({"error": {"type": "rate_limit", "code": "429", "message": "slow down"}}, status=429)
    )
    with pytest.raises(UpstreamServiceError) as exc:
        _client().embed_text("black wallet")
    assert "slow down" in exc.value.message


def test_missing_key_never_calls_out(transport):
    with pytest.raises(UpstreamServiceError):
        OpenAIClient(None).embed_text("black wallet")
    assert transport.calls == []


def test_describe_images_sends_every_image(transport):
    reply = '{"title": "Red umbrella", "description": "A folding umbrella.", "tags": ["umbrella", "red"]}'
    transport.replies.append(FakeResponse({"choices": [{"message": {"content": reply}}]}))

    analysis = _client().describe_images(["https://img.test/1.jpg", "https://img.test/2.jpg"])

    assert analysis.title == "Red umbrella"
    assert analysis.tags == ["umbrella", "red"]
    content = transport.calls[0]["json"]["messages"][0]["content"]
    assert [c["image_url"]["url"] for c in content if c["type"] == "image_url"] == [
        "https://img.test/1.jpg",
        "https://img.test/2.jpg",
    ]


def test_empty_vision_reply(transport):
    transport.replies.append(FakeResponse({"choices": [{"message": {"content": ""}}]}))
    with pytest.raises(UpstreamServiceError):
        _client().describe_image("https://img.test/1.jpg")


def test_parse_fenced_json():
    reply = '```json\n{"title": "Keys", "description": "Three keys on a ring.", "tags": "keys, ring"}\n```'
    analysis = parse_analysis(reply)
    assert analysis.title == "Keys"
    assert analysis.description == "Three keys on a ring."
    assert analysis.tags == ["keys", "ring"]


def test_parse_plain_text_reply():
    reply = "Title: Blue backpack\nA blue canvas backpack.\nHas a broken zip.\nbackpack, blue, canvas"
    analysis = parse_analysis(reply)
    assert analysis.title == "Blue backpack"
    assert analysis.description == "A blue canvas backpack. Has a broken zip."
    assert analysis.tags == ["backpack", "blue", "canvas"]


def test_parse_empty_reply_falls_back_to_defaults():
    analysis = parse_analysis("   ")
    assert analysis.title == "Found Item"
    assert analysis.description == "A found item"
    assert analysis.tags == []
