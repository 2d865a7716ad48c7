import logging
import os

logging.basicConfig(
    level=os.getenv("RELAY_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("gemini-relay")
