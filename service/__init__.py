"""
Package: service
Create and configure the Flask app, logging, and the specials API client
"""

from flask import Flask
from service import config
from service.common import log_handlers

# -----------------------------------------------------------------------------
# Create ONE global Flask app so `from service import app` returns the instance
# with every route registered; create_app() hands back the same object
# -----------------------------------------------------------------------------
app = Flask(__name__)
app.config.from_object(config)

# Outbound API client and the per-form state holders
from service.client import api  # noqa: E402  pylint: disable=wrong-import-position
from service.previews import previews  # noqa: E402  pylint: disable=wrong-import-position
from service.drafts import drafts  # noqa: E402  pylint: disable=wrong-import-position

api.init_app(app)
previews.init_app(app)
drafts.init_app(app)

with app.app_context():
    # Import after the app exists so @app.route binds to it
    from service import routes  # noqa: F401  pylint: disable=unused-import, wrong-import-position
    from service.common import error_handlers  # noqa: F401  pylint: disable=unused-import, wrong-import-position
    from service.ui import ui_bp  # pylint: disable=wrong-import-position

    app.register_blueprint(ui_bp)

    # Set up logging for production
    log_handlers.init_logging(app, "gunicorn.error")

    app.logger.info(70 * "*")
    app.logger.info("  E S P E C I A L E S   A D M I N   I N I T  ".center(70, "*"))
    app.logger.info(70 * "*")
    app.logger.info("Specials API at %s", app.config["ESPECIALES_API_URL"])


def create_app():
    """Factory-style accessor to the (already created) global app."""
    return app
