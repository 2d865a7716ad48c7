import json
import time

from .errors import _stream_error_record
from .logger import logger
from .logging_utils import _log_stream_event
from .reader import UpstreamLineReader

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"
DONE_RECORD = f"{DATA_PREFIX}{DONE_TOKEN}\n\n"


def _chat_completion_chunk(model, content, created=None):
    created_at = int(created) if created is not None else int(time.time())
    return {
        "id": f"cmpl-{created_at}-xyz",
        "object": "chat.completion.chunk",
        "created": created_at,
        "model": model,
        "choices": [
            {
                "delta": {"content": content},
                "index": 0,
                "finish_reason": None,
            }
        ],
    }


class ChatChunkFormatter:
    """Re-serialize extracted text as OpenAI ``chat.completion.chunk`` events."""

    name = "openai"

    def __init__(self, model):
        self.model = model

    def format(self, payload, message, content):
        chunk = _chat_completion_chunk(self.model, content)
        return f"{DATA_PREFIX}{json.dumps(chunk)}\n\n"

    def terminal(self):
        return DONE_RECORD


class PassthroughFormatter:
    """Relay the upstream payload as received; only suppression applies."""

    name = "passthrough"

    def __init__(self, model=None):
        self.model = model

    def format(self, payload, message, content):
        return f"{DATA_PREFIX}{payload}\n\n"

    def terminal(self):
        return DONE_RECORD


FORMATTERS = {
    ChatChunkFormatter.name: ChatChunkFormatter,
    PassthroughFormatter.name: PassthroughFormatter,
}


def get_formatter(profile, model):
    formatter_cls = FORMATTERS.get(profile)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown stream profile {profile!r}; expected one of {sorted(FORMATTERS)}."
        )
    return formatter_cls(model)


def _reject_constant(name):
    raise ValueError(f"Non-standard JSON constant {name}")


def parse_payload(payload):
    """Decode a ``data:`` payload as strict JSON.

    ``NaN``/``Infinity`` and nesting too deep for the decoder are rejected
    with ``ValueError`` like any other malformed payload.
    """
    try:
        return json.loads(payload, parse_constant=_reject_constant)
    except RecursionError as exc:
        raise ValueError("Payload nested too deeply") from exc


def extract_content(message):
    """Return ``candidates[0].content.parts[0].text`` or ``""``."""
    try:
        text = message["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(text, str):
        return ""
    return text


class SSETranscoder:
    """Per-request state machine turning upstream records into output events.

    ``last_content`` is the only state and belongs to a single request. Build
    a new transcoder for every proxied response.
    """

    def __init__(self, formatter):
        self.formatter = formatter
        self.last_content = None
        self.finished = False

    def is_repeat(self, content):
        # Every string ends with "", so empty content is always suppressed
        # once anything has been emitted. Kept intentionally.
        return self.last_content is not None and self.last_content.endswith(content)

    def feed(self, record):
        if self.finished or not record.startswith(DATA_PREFIX):
            return None
        payload = record[len(DATA_PREFIX):]
        if payload == DONE_TOKEN:
            self.finished = True
            _log_stream_event("done", {"source": "upstream"})
            return self.formatter.terminal()
        try:
            message = parse_payload(payload)
        except ValueError:
            _log_stream_event("passthrough", {"record": record})
            return f"{record}\n\n"
        content = extract_content(message)
        if self.is_repeat(content):
            _log_stream_event(
                "suppressed",
                {"content": content, "last_content": self.last_content, "message": message},
            )
            return None
        self.last_content = content
        _log_stream_event("emitted", {"content": content, "message": message})
        return self.formatter.format(payload, message, content)

    def transcode(self, records):
        for record in records:
            output = self.feed(record)
            if output is not None:
                yield output
            if self.finished:
                return
        self.finished = True
        yield self.formatter.terminal()


def stream_transcoded(chunks, formatter):
    """Transcode one upstream SSE body given as an iterable of byte chunks.

    Closing the returned generator closes ``chunks`` so the upstream
    connection is released when the client goes away.
    """
    reader = UpstreamLineReader(chunks)
    transcoder = SSETranscoder(formatter)
    try:
        yield from transcoder.transcode(reader.records())
    finally:
        reader.close()


def _safe_stream(generator, request_id, start_time, method, path):
    status = 200
    try:
        for chunk in generator:
            yield chunk
    except GeneratorExit:
        status = 499
        logger.info(
            "Stream client disconnect request_id=%s method=%s path=%s",
            request_id,
            method,
            path,
        )
        raise
    except Exception as exc:
        record, status = _stream_error_record(exc)
        logger.exception(
            "Stream error request_id=%s method=%s path=%s status=%s",
            request_id,
            method,
            path,
            status,
        )
        yield record
    finally:
        generator.close()
        duration_ms = (time.time() - start_time) * 1000.0 if start_time else 0.0
        logger.info(
            "request.complete request_id=%s method=%s path=%s status=%s duration_ms=%.2f stream=True",
            request_id,
            method,
            path,
            status,
            duration_ms,
        )
