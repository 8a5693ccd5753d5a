"""
Google Sign-In demo - Flask Application

Handles login, the OAuth callback and a session-protected profile page.
Run with: flask --app examples.google_demo.login_provider:create_app run --cert adhoc
"""

import logging

from flask import Flask, abort, redirect, session, url_for

from examples.google_demo.app_config import FLASK_SECRET_KEY, sso
from google_sso import SsoError


def create_app() -> Flask:
    """
    Create and configure the Flask application with Google sign-in.

    Returns:
        Flask: Configured Flask application instance
    """
    logging.basicConfig(level=logging.INFO)

    app = Flask(__name__)
    app.secret_key = FLASK_SECRET_KEY
    app.config.update(
        SESSION_COOKIE_SECURE=True,  # Requires HTTPS
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_HTTPONLY=True,
    )
    sso.init_app(app)

    # ==================== Routes ====================

    @app.get("/")
    def home():
        user = session.get("user")
        if user is None:
            return f'<a href="{url_for("login")}">Sign in with Google</a>'
        return f"Signed in as {user['email']}"

    @app.get("/login")
    def login():
        """Send the browser to Google."""
        return sso.login_redirect()

    @app.get("/sso/callback")
    def callback():
        """
        Handle Google redirecting back after login.

        The identity is verified before anything is stored in the session.
        """
        try:
            identity = sso.handle_callback()
        except SsoError as e:
            app.logger.warning("Sign-in failed: %s", e)
            abort(e.error_code, description=e.description)

        session["user"] = {"sub": identity.sub, "email": identity.email, "name": identity.name}
        return redirect(url_for("home"))

    @app.get("/profile")
    def profile():
        user = session.get("user")
        if user is None:
            abort(401)
        return user

    return app
