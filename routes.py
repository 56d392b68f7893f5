"""
Flask routes for the facial screening engine.

Host-facing surface around one ScreeningSession: start a session, push
landmark frames, poll live state, stop early, and read the one-shot result.
Also exposes the active configuration. Landmark detection and camera capture
stay on the host side; frames arrive here as normalized point lists.
"""

import logging
import threading
from typing import Optional

from flask import Blueprint, Flask, jsonify, request

import config
from facescreen.landmark_frame import InvalidLandmarkFrame
from screening_session import ScreeningSession, SessionStatus
from services.result_channel import ResultChannel

logger = logging.getLogger(__name__)

# Create a blueprint for better organization
api = Blueprint('api', __name__)

# Global screening session (one active session per server process).
screening_session: Optional[ScreeningSession] = None

# One-shot channel for the current session's result; replaced on every start.
result_channel: Optional[ResultChannel] = None

# Guards replacement of the two globals above.
_session_swap_lock = threading.Lock()


def register_routes(app: Flask) -> None:
    """Attach the API blueprint to the Flask app."""
    app.register_blueprint(api)


def reset_session_state() -> None:
    """Stop any running countdown and forget the current session."""
    with _session_swap_lock:
        _discard_session()


def _discard_session() -> None:
    """Close and forget the current session; caller holds _session_swap_lock."""
    global screening_session, result_channel
    if screening_session is not None:
        screening_session.close()
    screening_session = None
    result_channel = None


@api.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@api.route("/config/all", methods=["GET"])
def get_all_config():
    """
    Get the screening configuration (durations, thresholds, fallbacks).

    Returns:
        JSON: see config.get_screening_config()
    """
    return jsonify(config.get_screening_config())


@api.route("/session/start", methods=["POST"])
def start_session():
    """
    Start a new screening session, discarding any previous one.

    Request Body (optional):
        {
            "durationSec": 30
        }

    Returns:
        JSON: {
            "success": true,
            "message": "Screening session started",
            "state": {...}
        }
    """
    global screening_session, result_channel

    data = request.get_json(silent=True) or {}
    duration = data.get("durationSec", config.SESSION_DURATION_SEC)
    try:
        duration = float(duration)
    except (TypeError, ValueError):
        return jsonify({"error": f"Invalid durationSec: {duration!r}"}), 400
    if duration <= 0:
        return jsonify({"error": "durationSec must be > 0"}), 400

    try:
        with _session_swap_lock:
            _discard_session()
            channel = ResultChannel()
            session = ScreeningSession(
                duration_sec=duration,
                result_handler=channel.deliver,
            )
            session.start()
            result_channel = channel
            screening_session = session
        return jsonify({
            "success": True,
            "message": "Screening session started",
            "state": session.get_state(),
        })

    except Exception as e:
        logger.exception("Failed to start screening session")
        return jsonify({
            "error": "Failed to start screening session",
            "details": str(e)
        }), 500


@api.route("/session/frame", methods=["POST"])
def push_frame():
    """
    Feed one landmark frame into the running session.

    Request Body:
        {
            "landmarks": [[x, y, z], ...] | [{"x": .., "y": .., "z": ..}, ...] | null,
            "timestamp": 1234.5   (optional, milliseconds)
        }
    A null or empty "landmarks" means no face in this frame (skipped).

    Returns:
        JSON: {
            "recording": true,
            "vitals": {"breathingRate": null, "heartRate": null},
            "blinkCount": 0
        }
    """
    if not request.is_json:
        return jsonify({"error": "Request must be JSON"}), 400
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "landmarks" not in data:
        return jsonify({"error": "Missing 'landmarks'"}), 400

    session = screening_session
    if session is None:
        return jsonify({"error": "Screening session not started"}), 404

    timestamp = data.get("timestamp")
    if timestamp is not None:
        try:
            timestamp = float(timestamp)
        except (TypeError, ValueError):
            return jsonify({"error": f"Invalid timestamp: {timestamp!r}"}), 400

    try:
        reading = session.on_frame(data["landmarks"], timestamp)
    except InvalidLandmarkFrame as e:
        return jsonify({"error": str(e)}), 400

    if reading is None:
        return jsonify({
            "error": "Screening session is not recording",
            "status": session.status.value,
        }), 409
    return jsonify({
        "recording": True,
        "vitals": reading.to_dict(),
        "blinkCount": session.get_state()["blinkCount"],
    })


@api.route("/session/stop", methods=["POST"])
def stop_session():
    """
    Stop the session early and return its result. Calling again (or after the
    timer already finished the session) returns the same result.

    Returns:
        JSON: SessionResult.to_dict()
    """
    session = screening_session
    if session is None:
        return jsonify({"error": "Screening session not started"}), 404
    try:
        result = session.stop()
        return jsonify(result.to_dict())
    except Exception as e:
        logger.exception("Failed to stop screening session")
        return jsonify({
            "error": "Failed to stop screening session",
            "details": str(e)
        }), 500


@api.route("/session/state", methods=["GET"])
def get_session_state():
    """
    Get live session state.

    Returns:
        JSON: {
            "status": "idle" | "recording" | "finalized",
            "durationSec": 30.0,
            "remainingSec": 12.0,
            "framesProcessed": 540,
            "framesSkipped": 3,
            "blinkCount": 4,
            "vitals": {"breathingRate": 14.2, "heartRate": 72.0}
        }
    """
    session = screening_session
    if session is None:
        return jsonify({"error": "Screening session not started", "status": "idle"}), 404
    return jsonify(session.get_state())


@api.route("/session/result", methods=["GET"])
def get_session_result():
    """
    Get the final result of the current session.

    Returns:
        JSON: SessionResult.to_dict(); 404 until the session has finalized
    """
    session = screening_session
    if session is None:
        return jsonify({"error": "Screening session not started"}), 404
    result = result_channel.get_last_result() if result_channel is not None else None
    if session.status != SessionStatus.FINALIZED or result is None:
        return jsonify({
            "error": "Result not available yet",
            "status": session.status.value,
        }), 404
    return jsonify(result.to_dict())
