import pymysql
pymysql.install_as_MySQLdb()
from flask import Flask
from flask_cors import CORS

from .config import DevConfig
from .extensions import db, migrate, jwt, ma, channel
from .utils.errors import register_error_handlers
from .api import (
    report_routes,
    catalog_routes,
    officer_routes,
    admin_routes,
)


def create_app(config_class=DevConfig) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Only the dashboard frontend may call the API
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("FRONTEND_ORIGIN")}},
        supports_credentials=True,
    )

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    channel.init_app(app)

    # Blueprints
    app.register_blueprint(report_routes.bp, url_prefix="/api/reports")
    app.register_blueprint(catalog_routes.bp, url_prefix="/api/categories")
    app.register_blueprint(officer_routes.bp, url_prefix="/api/officers")
    app.register_blueprint(admin_routes.bp, url_prefix="/api/admin")

    register_error_handlers(app)

    @app.get("/api/health")
    def health_check():
        return {
            "status": "ok",
            "service": "civic-reports-backend",
            "subscribers": channel.subscriber_count,
        }

    return app
