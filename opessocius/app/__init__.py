"""Application factory and app-wide configuration."""

import logging
import os
from http import HTTPStatus

import click
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, NotFound

from opessocius.app.api.routes import api_bp
from opessocius.app.security import HTML_NO_STORE, init_security
from opessocius.config import get_config
from opessocius.core.mailer import Mailer
from opessocius.store import DocumentStore


def setup_logging(app: Flask) -> None:
    """Attach one stream handler to the package logger at LOG_LEVEL."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    package_logger = logging.getLogger("opessocius")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(name)-28s %(levelname)-8s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        package_logger.addHandler(handler)
    app.logger.setLevel(level)

    if not app.debug:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def configure_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not Found", "status_code": 404}), HTTPStatus.NOT_FOUND

    @app.errorhandler(Exception)
    def handle_exception(exc):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.error("Unhandled exception: %s", exc, exc_info=True)
        return (
            jsonify({"error": "Internal Server Error", "status_code": 500}),
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )


def register_static_site(app: Flask, site_dir: str) -> None:
    """Serve the marketing pages; HTML is never cached."""
    site_dir = os.path.abspath(site_dir)

    @app.get("/", defaults={"path": "index.html"})
    @app.get("/<path:path>")
    def site(path: str):
        try:
            response = send_from_directory(site_dir, path)
        except NotFound:
            if "." in path.rsplit("/", 1)[-1]:
                raise
            response = send_from_directory(site_dir, f"{path.rstrip('/')}.html")
        if path.endswith(".html"):
            response.headers["Cache-Control"] = HTML_NO_STORE
        return response


def register_commands(app: Flask) -> None:
    @app.cli.command("verify-smtp")
    def verify_smtp():
        """Check that the configured SMTP relay accepts connections."""
        ok = app.extensions["opessocius.mailer"].verify()
        click.echo("SMTP server is ready to send emails" if ok else "SMTP connection failed")


def create_app(config=None) -> Flask:
    """Build the Flask app instance.

    ``config`` may be a config class, a config name ("development",
    "testing", "production") or a mapping of overrides.
    """
    app = Flask(__name__)

    if isinstance(config, dict):
        app.config.from_object(get_config(config.get("ENV_NAME")))
        app.config.update(config)
    elif isinstance(config, str) or config is None:
        app.config.from_object(get_config(config))
    else:
        app.config.from_object(config)

    setup_logging(app)
    app.logger.info("Starting site backend in %s mode", app.config["ENV_NAME"])

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    init_security(app)

    app.extensions["opessocius.mailer"] = Mailer.from_config(app.config)
    app.extensions["opessocius.store"] = DocumentStore(app.config["DOCUMENT_DB_PATH"])

    app.register_blueprint(api_bp, url_prefix="/api")
    configure_error_handlers(app)
    register_commands(app)

    if app.config.get("STATIC_SITE_DIR"):
        register_static_site(app, app.config["STATIC_SITE_DIR"])

    return app
