import logging

from flask import Flask, jsonify

from signa.config import Config
from signa.extensions import db, login_manager, migrate
from signa.models import User
from signa.routes import register_routes
from signa.storage import init_storage


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.from_mapping(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger("signa").setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"ok": False, "error": "Log in to continue."}), 401

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    init_storage(app)
    register_routes(app)
    return app


app = create_app()

__all__ = ["app", "db", "migrate", "create_app"]
