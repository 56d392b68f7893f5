"""
API endpoint tests.

Uses Flask test client. Does not require a running server.
"""

import json
import sys
import os

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest


def get_app_client():
    """Create Flask app and test client. Lazy to avoid import-time side effects."""
    from app import app
    app.config["TESTING"] = True
    return app.test_client()


def _landmarks():
    from tests.fixtures.synthetic_landmarks import as_json_rows, make_neutral_landmarks
    return as_json_rows(make_neutral_landmarks())


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        import routes
        routes.reset_session_state()
        self.client = get_app_client()

    def tearDown(self):
        import routes
        routes.reset_session_state()

    def start(self, **body):
        return self.client.post("/session/start", data=json.dumps(body), content_type="application/json")

    def push(self, landmarks, timestamp=None):
        body = {"landmarks": landmarks}
        if timestamp is not None:
            body["timestamp"] = timestamp
        return self.client.post("/session/frame", data=json.dumps(body), content_type="application/json")


class TestHealthAndConfig(ApiTestCase):

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["status"], "ok")

    def test_config_all(self):
        """GET /config/all should expose every tunable group."""
        r = self.client.get("/config/all")
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        for key in ("session", "blink", "motion", "asymmetry", "vitals", "risk"):
            self.assertIn(key, data)
        self.assertEqual(data["vitals"]["heartWindowSize"], 45)
        self.assertEqual(data["risk"]["highThreshold"], 45)

    def test_validate_config_defaults_clean(self):
        import config
        self.assertEqual(config.validate_config(), [])

    def test_validate_config_reports_inverted_thresholds(self):
        import config
        from unittest.mock import patch
        with patch.object(config, "RISK_MEDIUM_THRESHOLD", 60), patch("sys.stderr"):
            problems = config.validate_config()
        self.assertTrue(any("RISK_MEDIUM_THRESHOLD" in p for p in problems))


class TestSessionEndpoints(ApiTestCase):
    """Test the session lifecycle over HTTP."""

    def test_start(self):
        r = self.start(durationSec=30)
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertTrue(data["success"])
        self.assertEqual(data["state"]["status"], "recording")
        self.assertEqual(data["state"]["durationSec"], 30.0)

    def test_start_without_body_uses_default_duration(self):
        r = self.client.post("/session/start")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["state"]["durationSec"], 30.0)

    def test_start_rejects_bad_duration(self):
        self.assertEqual(self.start(durationSec="abc").status_code, 400)
        self.assertEqual(self.start(durationSec=0).status_code, 400)

    def test_endpoints_before_start_return_404(self):
        self.assertEqual(self.push(_landmarks()).status_code, 404)
        self.assertEqual(self.client.post("/session/stop").status_code, 404)
        self.assertEqual(self.client.get("/session/state").status_code, 404)
        self.assertEqual(self.client.get("/session/result").status_code, 404)

    def test_push_frame(self):
        self.start()
        r = self.push(_landmarks(), 0.0)
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertTrue(data["recording"])
        self.assertEqual(data["blinkCount"], 0)
        self.assertEqual(data["vitals"], {"breathingRate": None, "heartRate": None})
        state = self.client.get("/session/state").get_json()
        self.assertEqual(state["framesProcessed"], 1)

    def test_push_no_face_frame(self):
        self.start()
        r = self.push(None, 0.0)
        self.assertEqual(r.status_code, 200)
        state = self.client.get("/session/state").get_json()
        self.assertEqual(state["framesSkipped"], 1)
        self.assertEqual(state["framesProcessed"], 0)

    def test_push_frame_validation(self):
        self.start()
        r = self.client.post("/session/frame", data="not json", content_type="text/plain")
        self.assertEqual(r.status_code, 400)
        r = self.client.post("/session/frame", data=json.dumps({}), content_type="application/json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.push(_landmarks()[:50]).status_code, 400)
        self.assertEqual(self.push(_landmarks(), "soon").status_code, 400)

    def test_push_non_iterable_landmarks_is_bad_request(self):
        """Flat number lists and scalars are rejected with 400, not a server error."""
        self.start()
        for bad in ([0.1, 0.2, 0.3], [0.1] * 478, 5, True):
            with self.subTest(landmarks=bad if not isinstance(bad, list) else len(bad)):
                r = self.push(bad, 0.0)
                self.assertEqual(r.status_code, 400)
                self.assertIn("error", r.get_json())
        self.assertEqual(self.client.get("/session/state").get_json()["framesProcessed"], 0)

    def test_push_frame_reports_blink_count(self):
        from tests.fixtures.synthetic_landmarks import as_json_rows, make_closed_eyes_landmarks
        self.start()
        self.push(_landmarks(), 0.0)
        r = self.push(as_json_rows(make_closed_eyes_landmarks()), 33.0)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["blinkCount"], 1)

    def test_concurrent_starts_leave_one_live_session(self):
        """Racing /session/start calls close every replaced session's timer."""
        import threading
        from unittest.mock import patch
        import routes
        from screening_session import ScreeningSession

        created = []

        def make_session(*args, **kwargs):
            session = ScreeningSession(*args, **kwargs)
            created.append(session)
            return session

        barrier = threading.Barrier(6)
        codes = []

        def worker():
            client = get_app_client()
            barrier.wait()
            r = client.post("/session/start", data=json.dumps({}), content_type="application/json")
            codes.append(r.status_code)

        with patch("routes.ScreeningSession", side_effect=make_session):
            threads = [threading.Thread(target=worker) for _ in range(6)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=10)

        self.assertEqual(codes, [200] * 6)
        self.assertEqual(len(created), 6)
        live = [s for s in created if s._timer is not None]
        self.assertEqual(live, [routes.screening_session])

    def test_stop_returns_result_and_is_idempotent(self):
        self.start()
        for i in range(20):
            self.push(_landmarks(), i * 33.0)
        r = self.client.post("/session/stop")
        self.assertEqual(r.status_code, 200)
        first = r.get_json()
        self.assertIn(first["level"], ("Low", "Medium", "High"))
        self.assertEqual(first["framesProcessed"], 20)
        self.assertEqual(first["points"]["blink"], 40)
        second = self.client.post("/session/stop").get_json()
        self.assertEqual(first, second)

    def test_frame_after_stop_is_conflict(self):
        self.start()
        self.client.post("/session/stop")
        r = self.push(_landmarks(), 0.0)
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.get_json()["status"], "finalized")

    def test_result_available_after_stop(self):
        self.start()
        self.assertEqual(self.client.get("/session/result").status_code, 404)
        stopped = self.client.post("/session/stop").get_json()
        r = self.client.get("/session/result")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json(), stopped)

    def test_restart_discards_previous_session(self):
        self.start()
        self.push(_landmarks(), 0.0)
        self.client.post("/session/stop")
        self.start()
        state = self.client.get("/session/state").get_json()
        self.assertEqual(state["status"], "recording")
        self.assertEqual(state["framesProcessed"], 0)
        self.assertEqual(self.client.get("/session/result").status_code, 404)


if __name__ == "__main__":
    unittest.main()
