"""
=============================================================================
FACIAL SCREENING ENGINE - APPLICATION ENTRY POINT (app.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This is the "front door" of the server. When you run "python app.py", the
computer starts a small web server that a host app (mobile WebView, browser,
desktop shell) talks to. The host:

  1. Starts a screening session (POST /session/start).
  2. Sends the face-mesh landmarks of every camera frame (POST /session/frame).
  3. Polls live state (GET /session/state) and, when the 30 s countdown ends
     or it stops early (POST /session/stop), reads the result.

The host owns the camera and the landmark detector; this server only does the
signal processing and scoring. The actual routes are defined in routes.py.

HOW TO RUN:
-----------
  - From project root:  python app.py
  - By default the app is at:  http://localhost:5000

CONFIGURATION:
--------------
  - Settings (durations, thresholds, port) come from the .env file and config.py.
=============================================================================
"""

# ---------------------------------------------------------------------------
# Step 1: Load environment variables from .env (before anything else)
# ---------------------------------------------------------------------------
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

# ---------------------------------------------------------------------------
# Step 2: Import the web framework and our own modules
# ---------------------------------------------------------------------------
from flask import Flask
from flask_cors import CORS
from flask_compress import Compress

from routes import register_routes
import config

# ---------------------------------------------------------------------------
# Step 3: Warn the operator about out-of-range settings
# ---------------------------------------------------------------------------
config.validate_config()


def create_app() -> Flask:
    """
    Create and configure the Flask application (the web server).

    What it does:
      - Creates a new Flask "app" object.
      - Enables CORS so a WebView or browser page on another origin can call
        the API.
      - Enables compression for JSON responses when the client supports it.
      - Registers the session and config routes from routes.py.

    Returns:
        The configured Flask application.
    """
    app = Flask(__name__)

    # In production you would restrict this to specific origins.
    CORS(app, resources={r"/*": {"origins": "*"}})

    Compress(app)

    register_routes(app)

    return app


# ---------------------------------------------------------------------------
# Create the one global Flask application
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Run the server when this file is executed directly (e.g. "python app.py")
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    """
    - If FLASK_DEBUG is true: use Flask's built-in development server.
    - Otherwise: use Waitress, a production-style server. Frames for one
      session are processed under the session lock, and starting a new
      session swaps the route globals under a module lock in routes.py.

    Host and port come from config (default: 0.0.0.0:5000).
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if config.FLASK_DEBUG:
        app.run(
            host=config.FLASK_HOST,
            port=config.FLASK_PORT,
            debug=True
        )
    else:
        import waitress
        waitress.serve(app, host=config.FLASK_HOST, port=config.FLASK_PORT, threads=4)
