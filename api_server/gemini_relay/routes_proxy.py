import time
import uuid

import requests
from flask import Response, current_app, g, request, stream_with_context

from .client import _iter_upstream_chunks, _response_headers, _send_upstream
from .errors import _text_error
from .logger import logger
from .logging_utils import _mask_key, _truncate_log
from .routes_auth import _authorize_request
from .streaming import _safe_stream, stream_transcoded

EVENT_STREAM = "text/event-stream"
PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _is_event_stream(response):
    return EVENT_STREAM in (response.headers.get("Content-Type") or "")


def register_proxy_routes(app):
    @app.route("/", defaults={"path": ""}, methods=PROXY_METHODS)
    @app.route("/<path:path>", methods=PROXY_METHODS)
    def relay(path):
        api_key, auth_error = _authorize_request()
        if auth_error:
            return auth_error
        logger.info(
            "Relaying %s /%s key=%s request_id=%s",
            request.method,
            path,
            _mask_key(api_key),
            getattr(g, "request_id", None),
        )
        try:
            upstream = _send_upstream(
                request.method,
                path,
                request.args,
                request.headers,
                request.get_data(),
                api_key,
            )
        except requests.RequestException as exc:
            logger.exception("Upstream connection failed for /%s.", path)
            return _text_error(f"An error occurred: {exc}", status=502)

        if not upstream.ok:
            try:
                error_body = upstream.text
            finally:
                upstream.close()
            logger.warning(
                "Upstream error status=%s body=%s", upstream.status_code, _truncate_log(error_body)
            )
            return _text_error(f"API request failed: {error_body}", status=upstream.status_code)

        if _is_event_stream(upstream):
            request_id = getattr(g, "request_id", uuid.uuid4().hex)
            start_time = getattr(g, "start_time", time.time())
            formatter = current_app.extensions["gemini_relay.formatter"]
            safe_stream = _safe_stream(
                stream_transcoded(_iter_upstream_chunks(upstream), formatter),
                request_id,
                start_time,
                request.method,
                request.path,
            )
            response = Response(
                stream_with_context(safe_stream),
                mimetype=EVENT_STREAM,
                headers={"Cache-Control": "no-cache"},
            )
            response.call_on_close(upstream.close)
            return response

        response = Response(
            stream_with_context(_iter_upstream_chunks(upstream)),
            status=upstream.status_code,
            headers=_response_headers(upstream.headers),
        )
        response.call_on_close(upstream.close)
        return response
