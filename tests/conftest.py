"""Shared fixtures: a Flask test client and a fake streaming upstream."""

import json

import pytest

from gemini_relay import routes_proxy
from gemini_relay.server import create_app


def gemini_event(text):
    """Build one upstream SSE line carrying ``text`` in the first content part."""
    payload = {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}
    return f"data: {json.dumps(payload)}\n"


class FakeUpstream:
    """Minimal stand-in for a streamed ``requests.Response``."""

    def __init__(self, chunks=(), status_code=200, content_type="text/event-stream", text="", error=None):
        self.status_code = status_code
        self.headers = {"Content-Type": content_type, "X-Upstream": "gemini"}
        self.text = text
        self.closed = False
        self._chunks = list(chunks)
        self._error = error

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=None):
        for chunk in self._chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


@pytest.fixture
def app():
    app = create_app(stream_profile="openai", model_name="gpt-3.5-turbo")
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upstream(monkeypatch):
    """Install a fake upstream; returns a dict recording the forwarded call."""
    state = {"response": FakeUpstream(), "calls": []}

    def _fake_send(method, path, args, headers, body, api_key):
        state["calls"].append(
            {
                "method": method,
                "path": path,
                "args": args.to_dict(flat=False),
                "headers": dict(headers),
                "body": body,
                "api_key": api_key,
            }
        )
        return state["response"]

    monkeypatch.setattr(routes_proxy, "_send_upstream", _fake_send)
    return state
