from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS

# Flask extensions singletons; bound to the app in create_app

db = SQLAlchemy()
migrate = Migrate()
cors = CORS()


def cors_resources(origins: list[str]) -> dict:
	"""The JSON API and served uploads are the only cross-origin surfaces."""
	return {r"/api/*": {"origins": origins}, r"/uploads/*": {"origins": origins}}
