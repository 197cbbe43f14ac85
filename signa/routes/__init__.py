from flask import jsonify

from signa.errors import SignaError
from signa.routes.admin import register_admin_routes
from signa.routes.auth import register_auth_routes
from signa.routes.public import register_public_routes


def register_error_handlers(app):
    @app.errorhandler(SignaError)
    def handle_signa_error(exc):
        if exc.status_code >= 500:
            app.logger.error("%s: %s", type(exc).__name__, exc.message)
        else:
            app.logger.info("Rejected (%s): %s", type(exc).__name__, exc.message)
        return jsonify(exc.to_dict()), exc.status_code


def register_routes(app):
    register_error_handlers(app)
    register_auth_routes(app)
    register_public_routes(app)
    register_admin_routes(app)
