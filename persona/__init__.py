from __future__ import annotations

from pathlib import Path

from flask import Flask
from dotenv import load_dotenv

from .config import Config


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    app.json.ensure_ascii = False
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    register_blueprints(app)

    return app


def register_blueprints(app: Flask) -> None:
    from .chat import bp as chat_bp
    from .images import bp as images_bp
    from .uploads import bp as uploads_bp

    app.register_blueprint(chat_bp)
    app.register_blueprint(images_bp)
    app.register_blueprint(uploads_bp)
