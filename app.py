import os
import logging
import threading
import time
from collections import defaultdict, deque
from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from flask import Flask, g, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from riseup.auth import init_auth
from riseup.auth.otp import OtpService
from riseup.database.db_manager import db, initialize_database
from riseup.domain.library import LikeRepository, PlaylistRepository, TrackRepository
from riseup.domain.media import build_default_relay
from riseup.interfaces.http.routes import (
    admin_bp,
    auth_bp,
    creators_bp,
    health_bp,
    playlist_bp,
    tracks_bp,
)
from riseup.observability import configure_structured_logging, init_tracing, metrics_blueprint
from riseup.sessions import init_sessions
from riseup.support.mailer import Mailer


logger = logging.getLogger(__name__)

FRONTEND_DIST = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'frontend', 'dist')


def configure_logging(log_dir: str, enable_console: Optional[bool] = None) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is on
      - Werkzeug/Flask loggers routed to root

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_path = os.path.join(log_dir, f"log-{timestamp}")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; drop earlier file/console handlers from this function
    root.handlers = [
        h for h in root.handlers
        if not isinstance(h, logging.FileHandler) and not getattr(h, '_riseup_console', False)
    ]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if enable_console is None:
        enable_console = bool(Config.ENABLE_CONSOLE_LOGS)
    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        console_handler._riseup_console = True
        root.addHandler(console_handler)

    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def _install_rate_limiter(app: Flask) -> None:
    rate_limit_state = {
        'lock': threading.RLock(),
        'buckets': defaultdict(deque),
    }
    app.extensions['rate_limiter'] = rate_limit_state

    @app.before_request
    def _apply_rate_limit():
        if request.method == "OPTIONS":
            return None
        limit = app.config['RATE_LIMIT_REQUESTS']
        window = app.config['RATE_LIMIT_WINDOW_SECONDS']
        identifier = (
            request.headers.get('X-Forwarded-For', '')
            or request.remote_addr
            or 'unknown'
        ).split(',')[0].strip()
        now = time.time()
        with rate_limit_state['lock']:
            bucket = rate_limit_state['buckets'][identifier]
            threshold = now - window
            while bucket and bucket[0] <= threshold:
                bucket.popleft()
            if len(bucket) >= limit:
                app.logger.warning(
                    "Rate limit exceeded",
                    extra={"policy": "rate_limit", "ip": identifier},
                )
                return jsonify(
                    {
                        "error": "rate_limited",
                        "message": "Too many requests. Please slow down.",
                    }
                ), 429
            bucket.append(now)


def create_app(config_overrides: Optional[Mapping[str, Any]] = None):
    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_structured_logging(app)
    init_tracing(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        if request.path.startswith('/api'):
            elapsed_ms = (time.perf_counter() - g.get('request_started', time.perf_counter())) * 1000
            app.logger.info("%s %s %s in %dms", request.method, request.path, response.status_code, elapsed_ms)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in app.config['CORS_ALLOWED_ORIGINS']
        if origin and origin.strip() and origin.strip() != "*"
    })
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        supports_credentials=True,
    )

    if (
        app.config['ENABLE_RATE_LIMITING']
        and app.config['RATE_LIMIT_REQUESTS'] > 0
        and app.config['RATE_LIMIT_WINDOW_SECONDS'] > 0
    ):
        _install_rate_limiter(app)

    csp_policy = app.config.get('CONTENT_SECURITY_POLICY')
    if csp_policy:

        @app.after_request
        def _apply_csp(response):
            response.headers.setdefault('Content-Security-Policy', csp_policy)
            return response

    initialize_database(app)
    init_sessions(app)
    init_auth(app)

    # Collaborators are looked up by the blueprints through app.extensions
    mailer = Mailer.from_config(app.config)
    if not mailer.configured:
        app.logger.warning("SMTP credentials not set; OTP codes will be logged instead of mailed")
    app.extensions['mailer'] = mailer
    app.extensions['otp_service'] = OtpService(mailer, ttl_seconds=app.config['OTP_TTL_SECONDS'])

    media_relay = build_default_relay(app.config)
    if media_relay is None:
        app.logger.warning("MEDIA_BUCKET not set; admin uploads are disabled")
    app.extensions['media_relay'] = media_relay

    app.extensions['track_repository'] = TrackRepository()
    app.extensions['like_repository'] = LikeRepository()
    app.extensions['playlist_repository'] = PlaylistRepository()

    app.register_blueprint(auth_bp)
    app.register_blueprint(tracks_bp)
    app.register_blueprint(playlist_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(creators_bp)
    app.register_blueprint(metrics_blueprint)
    app.register_blueprint(health_bp)

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        if not request.path.startswith('/api'):
            return exc
        code = (exc.name or 'error').lower().replace(' ', '_')
        return jsonify({"error": code, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _unhandled_error(exc: Exception):
        db.session.rollback()
        app.logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=exc)
        return jsonify({"error": "internal_error", "message": "Internal server error"}), 500

    # --- Serve the built single-page app for everything outside /api ---
    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def serve_frontend(path):
        if path == 'api' or path.startswith('api/'):
            return jsonify({"error": "not_found", "message": "Not found"}), 404
        dist_dir = app.config.get('FRONTEND_DIST') or FRONTEND_DIST
        if path and os.path.isfile(os.path.join(dist_dir, path)):
            return send_from_directory(dist_dir, path)
        if not os.path.isfile(os.path.join(dist_dir, 'index.html')):
            return jsonify({"error": "not_found", "message": "Frontend build not found"}), 404
        return send_from_directory(dist_dir, 'index.html')

    return app


if __name__ == '__main__':
    # With the reloader only the child process configures file logging
    debug_mode = bool(Config.DEBUG)
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'riseup', 'log')
    if not debug_mode or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        log_file_path = configure_logging(log_dir)
        logger.info("File logging initialized at %s", log_file_path)

    if Config.SECRET_KEY == 'fallback-secret-key':
        logger.warning("SECRET_KEY not set; using the development fallback")

    app = create_app()
    app.logger.handlers = []
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = True
    logger.info("Starting Flask application...")
    app.run(debug=Config.DEBUG, host=Config.HOST, port=Config.PORT, threaded=True)
