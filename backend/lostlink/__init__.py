import os
from flask import Flask, send_from_directory
from .config import get_config
from .extensions import db, migrate, cors, cors_resources
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__)

    # Ensure .env is loaded before reading env vars
    load_dotenv()
    app.config.from_object(get_config(config_name))

    from .log import configure_logging
    configure_logging(app)

    # Honor proxy headers from Nginx for correct url_for(_external=True) scheme/host
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)  # type: ignore[assignment]

    # Init extensions
    cors.init_app(app, resources=cors_resources(app.config["CORS_ALLOW_ORIGINS"]))
    db.init_app(app)
    migrate.init_app(app, db)

    from .errors import register_error_handlers
    from .services import init_services
    register_error_handlers(app)
    init_services(app)

    # Register blueprints (v1 API)
    from .apis.v1 import register_api
    register_api(app)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/db-check")
    def db_check():
        try:
            db.session.execute(text("SELECT 1"))
            return {"db": "ok"}
        except SQLAlchemyError as e:
            db.session.rollback()
            return {"db": "error", "message": str(e)}, 500

    @app.get("/uploads/<path:filename>")
    def uploads(filename: str):
        """Serve images kept by the local object store (no S3 bucket configured)."""
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    if not app.config.get("TESTING"):
        os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    return app
