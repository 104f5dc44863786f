"""Flask application factory for the MediaSplit web UI."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify

from mediasplit.ffutil import MediaEngine


def create_app(work_dir: Path | None = None, engine: MediaEngine | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="mediasplit_"))
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024 * 1024  # 10 GB
    # None selects the shared FFmpeg engine
    app.config["MEDIA_ENGINE"] = engine

    from mediasplit.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
