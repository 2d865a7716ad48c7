from flask import Flask
from flask_cors import CORS

from .config import CORS_MAX_AGE, RELAY_MODEL_NAME, RELAY_STREAM_PROFILE
from .routes import register_routes
from .streaming import get_formatter


def create_app(stream_profile=None, model_name=None):
    app = Flask(__name__)
    CORS(
        app,
        origins="*",
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=CORS_MAX_AGE,
    )
    app.extensions["gemini_relay.formatter"] = get_formatter(
        stream_profile or RELAY_STREAM_PROFILE,
        model_name or RELAY_MODEL_NAME,
    )
    register_routes(app)
    return app
