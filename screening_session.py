"""
Screening Session.

Orchestrates one fixed-duration facial screening run: frames arrive from the
external landmark detector through on_frame(), a 1 Hz countdown timer calls
tick(), and finalize() (timeout or explicit stop) aggregates the signals,
scores them and delivers the SessionResult exactly once.

Concurrency: the frame callback and the timer thread share the session's
accumulators, so every mutation happens under self.lock. Delivery is one-shot:
a concurrent.futures.Future owned by the session is resolved by the first
finalize() call and the result handler runs once; later calls return the same
result without delivering again.

Pipeline: raw landmarks -> normalize_frame -> SessionAggregator.add_frame
-> (timeout / stop) -> SessionAggregator.finalize -> RiskScorer.score
-> SessionResult -> result future + handler.
"""

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import config
from facescreen.landmark_frame import normalize_frame
from facescreen.risk_scorer import PointsBreakdown, RiskLevel, RiskScorer, SignalBreakdown
from facescreen.session_aggregator import SessionAggregator
from facescreen.vitals_estimator import VitalsReading

logger = logging.getLogger(__name__)


class SessionNotStarted(RuntimeError):
    """Raised when finalize() is called on a session that was never started."""


class SessionStatus(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class SessionResult:
    """Immutable outcome of one screening session."""
    risk_percentage: int  # 0-100
    level: RiskLevel
    breakdown: SignalBreakdown  # scorer inputs, unchanged
    vitals: VitalsReading = field(default_factory=VitalsReading)
    points: PointsBreakdown = field(default_factory=PointsBreakdown)
    blink_count: int = 0
    frames_processed: int = 0

    @property
    def color(self) -> str:
        return self.level.color

    def to_dict(self) -> dict:
        """Host payload (camelCase keys, None for undetermined vitals)."""
        return {
            "percentage": self.risk_percentage,
            "level": self.level.value,
            "color": self.color,
            "details": {
                "blinkRate": self.breakdown.blink_rate,
                "motion": self.breakdown.motion_score,
                "asymmetry": self.breakdown.asymmetry,
            },
            "points": {
                "blink": self.points.blink,
                "motion": self.points.motion,
                "asymmetry": self.points.asymmetry,
            },
            "vitals": self.vitals.to_dict(),
            "blinkCount": self.blink_count,
            "framesProcessed": self.frames_processed,
        }


class SessionTimer:
    """
    Cooperative countdown: calls `callback` every `interval_sec` on a daemon
    thread until stopped.
    """

    def __init__(self, callback: Callable[[], None], interval_sec: Optional[float] = None):
        self.callback = callback
        self.interval_sec = float(config.TIMER_INTERVAL_SEC if interval_sec is None else interval_sec)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and not self._stop_event.is_set())

    def _run(self) -> None:
        # A failing tick is logged and the countdown keeps going, so the
        # session still reaches its timeout.
        while not self._stop_event.wait(self.interval_sec):
            try:
                self.callback()
            except Exception:
                logger.exception("Session timer callback failed")


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ScreeningSession:
    """
    Real-time screening engine exposed to a host.

    Usage:
        session = ScreeningSession(result_handler=print)
        session.start()
        # detector callback, once per frame:
        session.on_frame(landmarks)
        # timer finalizes after 30 s, or stop early:
        result = session.finalize()
    """

    def __init__(
        self,
        duration_sec: Optional[float] = None,
        result_handler: Optional[Callable[[SessionResult], None]] = None,
        scorer: Optional[RiskScorer] = None,
        aggregator_factory: Optional[Callable[[float], SessionAggregator]] = None,
        timer_interval_sec: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            duration_sec: Recording window (default config.SESSION_DURATION_SEC)
            result_handler: Called once with the SessionResult on finalize
            scorer: Risk scorer (default RiskScorer() with config thresholds)
            aggregator_factory: Builds a fresh SessionAggregator for a duration
            timer_interval_sec: Countdown tick interval (default config.TIMER_INTERVAL_SEC)
            clock: Millisecond clock used when a frame carries no timestamp
        """
        self.duration_sec = float(config.SESSION_DURATION_SEC if duration_sec is None else duration_sec)
        self.result_handler = result_handler
        self.scorer = scorer or RiskScorer()
        self._aggregator_factory = aggregator_factory or (lambda d: SessionAggregator(duration_sec=d))
        self.timer_interval_sec = float(
            config.TIMER_INTERVAL_SEC if timer_interval_sec is None else timer_interval_sec
        )
        self._clock = clock or _monotonic_ms

        self.lock = threading.Lock()
        self.status = SessionStatus.IDLE
        self.aggregator: SessionAggregator = self._aggregator_factory(self.duration_sec)
        self.remaining_sec = self.duration_sec
        self.frames_skipped = 0
        self._result: Optional[SessionResult] = None
        self._future: Optional[Future] = None
        self._timer: Optional[SessionTimer] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, start_timer: bool = True) -> Future:
        """
        Begin a new recording window, discarding all previous accumulator state.

        Args:
            start_timer: Run the 1 Hz countdown thread (False when the host
                         drives tick() itself, e.g. from capture timestamps)

        Returns:
            Future resolved with the SessionResult when the session finalizes
        """
        self._stop_timer()
        with self.lock:
            if self.status == SessionStatus.RECORDING:
                logger.info("Restarting session; abandoning the run in progress")
            self.aggregator = self._aggregator_factory(self.duration_sec)
            self.remaining_sec = self.duration_sec
            self.frames_skipped = 0
            self._result = None
            self._future = Future()
            self.status = SessionStatus.RECORDING
            future = self._future
        if start_timer:
            self._timer = SessionTimer(self.tick, self.timer_interval_sec)
            self._timer.start()
        logger.info("Screening session started: duration=%.1fs", self.duration_sec)
        return future

    def on_frame(self, landmarks: Any, timestamp_ms: Optional[float] = None) -> Optional[VitalsReading]:
        """
        Process one detector frame.

        Args:
            landmarks: Raw point set, or None / empty when no face was found
            timestamp_ms: Capture time; defaults to the session clock

        Returns:
            Live vitals after this frame, or None when no session is recording

        Raises:
            InvalidLandmarkFrame: Malformed point set (frame is not recorded)
        """
        if timestamp_ms is None:
            timestamp_ms = self._clock()
        with self.lock:
            if self.status != SessionStatus.RECORDING:
                return None
            frame = normalize_frame(landmarks, timestamp_ms)
            if frame is None:
                self.frames_skipped += 1
                return self.aggregator.vitals.reading()
            return self.aggregator.add_frame(frame)

    def tick(self) -> None:
        """Advance the countdown by one interval; finalize when it reaches zero."""
        with self.lock:
            if self.status != SessionStatus.RECORDING:
                return
            self.remaining_sec = max(0.0, self.remaining_sec - self.timer_interval_sec)
            expired = self.remaining_sec <= 0
        if expired:
            self.finalize()

    def finalize(self) -> SessionResult:
        """
        Score the collected samples and deliver the result (one-shot).

        Safe to call from both the timer and an explicit stop: only the first
        call computes and delivers; later calls return the same result.

        Raises:
            SessionNotStarted: start() was never called
        """
        with self.lock:
            if self._result is not None:
                return self._result
            if self.status == SessionStatus.IDLE:
                raise SessionNotStarted("finalize() called before start()")
            signals = self.aggregator.finalize()
            assessment = self.scorer.score(signals.blink_rate, signals.motion_score, signals.asymmetry)
            result = SessionResult(
                risk_percentage=assessment.percentage,
                level=assessment.level,
                breakdown=assessment.breakdown,
                vitals=signals.vitals,
                points=assessment.points,
                blink_count=signals.blink_count,
                frames_processed=signals.frames_processed,
            )
            self._result = result
            self.status = SessionStatus.FINALIZED
            future = self._future

        self._stop_timer()
        log = logger.info if config.SCREENING_DIAGNOSTIC_LOGGING else logger.debug
        log(
            "risk_breakdown blink=%d/40 (rate %.1f/min) motion=%d/35 (score %.2f) asymmetry=%d/25 (value %.4f)",
            result.points.blink, result.breakdown.blink_rate,
            result.points.motion, result.breakdown.motion_score,
            result.points.asymmetry, result.breakdown.asymmetry,
        )
        logger.info("Screening result: %d%% - %s", result.risk_percentage, result.level.value)

        if future is not None and not future.done():
            future.set_result(result)
        if self.result_handler is not None:
            try:
                self.result_handler(result)
            except Exception as e:
                logger.warning("Result handler failed: %s", e)
        return result

    def stop(self) -> SessionResult:
        """Explicit early stop; same as finalize()."""
        return self.finalize()

    def close(self) -> None:
        """Stop the countdown without delivering a result."""
        self._stop_timer()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def result(self) -> Optional[SessionResult]:
        with self.lock:
            return self._result

    @property
    def result_future(self) -> Optional[Future]:
        return self._future

    def wait_for_result(self, timeout: Optional[float] = None) -> SessionResult:
        """Block until the session finalizes (timeout in seconds)."""
        if self._future is None:
            raise SessionNotStarted("wait_for_result() called before start()")
        return self._future.result(timeout=timeout)

    def get_state(self) -> dict:
        """Thread-safe snapshot for polling hosts."""
        with self.lock:
            reading = self.aggregator.vitals.reading()
            return {
                "status": self.status.value,
                "durationSec": self.duration_sec,
                "remainingSec": self.remaining_sec,
                "framesProcessed": self.aggregator.frames_processed,
                "framesSkipped": self.frames_skipped,
                "blinkCount": self.aggregator.blink_count,
                "vitals": reading.to_dict(),
            }

    def _stop_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.stop()
