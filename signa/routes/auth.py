from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from signa.models import User


def _credentials():
    if request.is_json:
        data = request.get_json(silent=True) or {}
    else:
        data = request.form
    return (
        (data.get("username") or "").strip(),
        data.get("password") or "",
        bool(data.get("remember")),
    )


def register_auth_routes(app):
    @app.route("/login", methods=["POST"])
    def login():
        username, password, remember = _credentials()

        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password):
            current_app.logger.warning("Failed login for username: %s", username)
            return jsonify({"ok": False, "error": "Invalid username or password."}), 401

        login_user(user, remember=remember)
        return jsonify({"ok": True, "user_id": user.id, "tenant_id": user.tenant_id})

    @app.route("/logout")
    @login_required
    def logout():
        current_app.logger.info("User %s logged out", current_user.id)
        logout_user()
        return jsonify({"ok": True})
