from flask import Blueprint, Flask

from ...modules.lost.routes import bp as lost_bp
from ...modules.found.routes import bp as found_bp
from ...modules.search.routes import bp as search_bp
from ...modules.claims.routes import bp as claims_bp
from ...modules.notifications.routes import bp as notifications_bp


def register_api(app: Flask) -> None:
    api_v1 = Blueprint("api_v1", __name__, url_prefix="/api/v1")

    # Mount feature blueprints
    api_v1.register_blueprint(lost_bp)
    api_v1.register_blueprint(found_bp)
    api_v1.register_blueprint(search_bp)
    api_v1.register_blueprint(claims_bp)
    api_v1.register_blueprint(notifications_bp)

    app.register_blueprint(api_v1)
