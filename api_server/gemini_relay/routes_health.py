from flask import jsonify


def register_health_routes(app):
    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})
