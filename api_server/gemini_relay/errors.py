import json

import requests
from flask import Response


def _error_payload(message, error_type="proxy_error", code=None):
    payload = {"error": {"message": message, "type": error_type}}
    if code is not None:
        payload["error"]["code"] = code
    return payload


def _text_error(message, status=400):
    return Response(message, status=status, mimetype="text/plain")


def _stream_error_payload(error):
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None) or 502
    if isinstance(error, requests.RequestException):
        error_type = "upstream_error"
    else:
        error_type = "proxy_error"
        status = 500
    message = str(error) or error.__class__.__name__
    return _error_payload(message, error_type=error_type, code=status), status


def _stream_error_record(error):
    payload, status = _stream_error_payload(error)
    return f"event: error\ndata: {json.dumps(payload)}\n\n", status
