import random

from flask import request

from .config import RELAY_KEY_SEPARATOR
from .errors import _text_error


def _extract_bearer_token():
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return None


def _parse_api_keys(token, separator=RELAY_KEY_SEPARATOR):
    if not token:
        return []
    return [key.strip() for key in token.split(separator) if key.strip()]


def _select_api_key(keys, rng=random):
    return keys[rng.randrange(len(keys))]


def _authorize_request():
    """Pick one upstream key from the caller's ``Authorization`` header.

    The header carries one or more Gemini keys, e.g.
    ``Bearer key-a;key-b;key-c``. Returns ``(api_key, error_response)``.
    """
    token = _extract_bearer_token()
    if token is None:
        return None, _text_error(
            "API key is missing or incorrect in Authorization header.", status=400
        )
    keys = _parse_api_keys(token)
    if not keys:
        return None, _text_error("Valid API key is missing.", status=400)
    return _select_api_key(keys), None
