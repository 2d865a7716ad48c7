import requests

from .config import GEMINI_BASE_URL, UPSTREAM_CONNECT_TIMEOUT, UPSTREAM_READ_TIMEOUT

HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}
STRIPPED_REQUEST_HEADERS = HOP_BY_HOP | {"host", "content-length", "authorization", "accept-encoding"}
STRIPPED_RESPONSE_HEADERS = HOP_BY_HOP | {"content-length", "content-encoding"}


def _build_upstream_url(path):
    return f"{GEMINI_BASE_URL}/{path.lstrip('/')}"


def _build_upstream_params(args, api_key):
    params = [(key, value) for key, value in args.items(multi=True) if key != "key"]
    params.append(("key", api_key))
    return params


def _forward_headers(headers):
    return {
        key: value
        for key, value in headers.items()
        if key.lower() not in STRIPPED_REQUEST_HEADERS
    }


def _response_headers(headers):
    return {
        key: value
        for key, value in headers.items()
        if key.lower() not in STRIPPED_RESPONSE_HEADERS
    }


def _send_upstream(method, path, args, headers, body, api_key):
    return requests.request(
        method,
        _build_upstream_url(path),
        params=_build_upstream_params(args, api_key),
        headers=_forward_headers(headers),
        data=body or None,
        stream=True,
        timeout=(UPSTREAM_CONNECT_TIMEOUT, UPSTREAM_READ_TIMEOUT),
        allow_redirects=True,
    )


def _iter_upstream_chunks(response):
    try:
        yield from response.iter_content(chunk_size=None)
    finally:
        response.close()
