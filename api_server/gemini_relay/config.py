import os

from .logger import logger


def _load_dotenv():
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    dotenv_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(dotenv_path):
        return
    try:
        with open(dotenv_path, "r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                if stripped.startswith("export "):
                    stripped = stripped[7:].strip()
                if "=" not in stripped:
                    logger.warning("Skipping invalid .env line: %s", stripped)
                    continue
                key, value = stripped.split("=", 1)
                key = key.strip()
                value = value.strip()
                if not key:
                    continue
                if len(value) >= 2 and value[0] == value[-1] and value[0] in {"\"", "'"}:
                    value = value[1:-1]
                os.environ.setdefault(key, value)
    except OSError as exc:
        logger.warning("Failed to load .env file %s: %s", dotenv_path, exc)


def _bool_env(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _int_env(name, default):
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning("Invalid integer in %s, using %s.", name, default)
        return default


def _timeout_env(name, default=None):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    if raw.strip().lower() in {"none", "off", "0"}:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid timeout in %s, using %s.", name, default)
        return default


def _normalize_base_url(base_url):
    return base_url.rstrip("/")


_load_dotenv()

GEMINI_BASE_URL = _normalize_base_url(
    os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
)
UPSTREAM_CONNECT_TIMEOUT = _timeout_env("UPSTREAM_CONNECT_TIMEOUT", 10.0)
UPSTREAM_READ_TIMEOUT = _timeout_env("UPSTREAM_READ_TIMEOUT")

RELAY_STREAM_PROFILE = os.getenv("RELAY_STREAM_PROFILE", "openai").strip().lower()
RELAY_MODEL_NAME = os.getenv("RELAY_MODEL_NAME", "gpt-3.5-turbo")
RELAY_KEY_SEPARATOR = os.getenv("RELAY_KEY_SEPARATOR", ";") or ";"

CORS_MAX_AGE = _int_env("RELAY_CORS_MAX_AGE", 86400)

LOG_MAX_CHARS = _int_env("PROXY_LOG_MAX_CHARS", 2000)
LOG_PAYLOAD_MAX_CHARS = _int_env("PROXY_LOG_PAYLOAD_MAX_CHARS", 4000)
LOG_PAYLOAD_MAX_ITEMS = _int_env("PROXY_LOG_PAYLOAD_MAX_ITEMS", 50)
LOG_PAYLOAD_MAX_DEPTH = _int_env("PROXY_LOG_PAYLOAD_MAX_DEPTH", 6)
LOG_STREAM_EVENTS = _bool_env("PROXY_LOG_STREAM_EVENTS", False)
