import os

from gemini_relay.config import GEMINI_BASE_URL, RELAY_STREAM_PROFILE
from gemini_relay.logger import logger
from gemini_relay.server import create_app

app = create_app()


if __name__ == "__main__":
    host = os.getenv("PROXY_HOST", "0.0.0.0")
    port = int(os.getenv("PROXY_PORT", "8000"))
    logger.info(
        "Starting relay on %s:%s (upstream=%s profile=%s)",
        host,
        port,
        GEMINI_BASE_URL,
        RELAY_STREAM_PROFILE,
    )
    app.run(host=host, port=port, threaded=True)
