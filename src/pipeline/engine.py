"""
Detection loop engine.

Drives the per-frame cycle on a single thread:
acquire -> infer -> decode -> suppress -> render -> display -> poll.

The loop runs until the source reports end of stream, the cancel key is
pressed, stop() is called, or the optional frame limit is reached.
Inference and decode failures skip the frame; they never end the loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from detection import decode, suppress
from models.detection import DetectionSet
from models.frame import FrameData
from runtime.errors import InferenceError

if TYPE_CHECKING:
    from runtime.context import DetectionSession


class LoopState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class LoopStats:
    """Runtime statistics for the detection loop."""
    frames_read: int = 0
    frames_processed: int = 0
    frames_skipped: int = 0
    detection_count: int = 0
    last_latency_ms: float = 0.0
    total_latency_ms: float = 0.0
    budget_overruns: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    stop_reason: Optional[str] = None

    @property
    def mean_latency_ms(self) -> float:
        if self.frames_read == 0:
            return 0.0
        return self.total_latency_ms / self.frames_read


class DetectionLoop:
    """
    Main detection loop over a DetectionSession.

    The session's source and display are owned by the loop from run() until
    it returns; both are released on every exit path.

    Example:
        session = create_session_from_config(config)
        loop = DetectionLoop(session)
        stats = loop.run()
    """

    def __init__(self, session: "DetectionSession"):
        self.session = session
        self.config = session.config
        self.stats = LoopStats()
        self.state = LoopState.RUNNING
        self._stop_requested = False
        self._cancel_key = self.config.display.cancel_key_code
        self._callbacks: List[Callable[[FrameData, DetectionSet], None]] = []

    def add_callback(self, callback: Callable[[FrameData, DetectionSet], None]) -> None:
        """
        Add a callback to be called after each frame is rendered.

        Args:
            callback: Function taking (frame_data, detection_set) as arguments.
        """
        self._callbacks.append(callback)

    def stop(self) -> None:
        """Request the loop to stop at the next cancellation check."""
        self._stop_requested = True

    def run(self) -> LoopStats:
        """
        Run the loop until it stops.

        Raises:
            DeviceUnavailable: If the frame source cannot be opened.
        """
        self.stats = LoopStats()
        self.state = LoopState.RUNNING
        source = self.session.source

        try:
            source.open()
            logging.info(f"Detection loop started: source={source.source_id}")

            while self.state is LoopState.RUNNING:
                self._step()

        except KeyboardInterrupt:
            logging.info("Detection loop interrupted by user")
            self._transition_stop("interrupted")
        finally:
            self._cleanup()

        return self.stats

    def _step(self) -> None:
        """One iteration of the per-frame cycle."""
        frame_data = self.session.source.read()
        if frame_data is None:
            logging.info(f"End of stream after {self.stats.frames_read} frames")
            self._transition_stop("end_of_stream")
            return

        self.stats.frames_read += 1
        started = time.perf_counter()

        detections = self._process_frame(frame_data)
        if detections is not None:
            renderer = self.session.renderer
            renderer.draw(frame_data.frame, detections)
            renderer.display(frame_data.frame)

            for callback in self._callbacks:
                try:
                    callback(frame_data, detections)
                except Exception as e:
                    logging.warning(f"Callback error on frame {frame_data.frame_index}: {e}")

        self._record_latency(started, frame_data)
        self._poll_cancellation()

        max_frames = self.config.loop.max_frames
        if max_frames is not None and self.stats.frames_read >= max_frames:
            self._transition_stop("max_frames")

        self._handle_periodic_logging()

    def _process_frame(self, frame_data: FrameData) -> Optional[DetectionSet]:
        """
        Infer, decode and suppress one frame.

        Returns None when the frame is skipped.
        """
        det_cfg = self.config.detection
        adapter = self.session.adapter

        try:
            raw_outputs = adapter.infer(frame_data.frame)
            candidates = decode(
                raw_outputs,
                frame_data.width,
                frame_data.height,
                det_cfg.confidence_threshold,
                num_classes=getattr(adapter, "num_classes", None),
                class_names=getattr(adapter, "class_names", None),
            )
        except InferenceError as e:
            self.stats.frames_skipped += 1
            logging.warning(
                f"Skipping frame {frame_data.frame_index} (ts={frame_data.timestamp:.3f}): "
                f"{type(e).__name__}: {e}"
            )
            return None

        kept = suppress(
            candidates,
            iou_threshold=det_cfg.iou_threshold,
            score_threshold=det_cfg.effective_score_threshold,
            class_aware=det_cfg.class_aware_nms,
        )

        self.stats.frames_processed += 1
        self.stats.detection_count += len(kept)
        if kept and getattr(adapter, "full_frame", False):
            logging.info(f"Predicted label for {frame_data.source}: {kept[0].label}")
        elif kept:
            logging.debug(
                f"[DETECT] frame={frame_data.frame_index} candidates={len(candidates)} kept={len(kept)}"
            )

        return DetectionSet.from_candidates(kept, frame_index=frame_data.frame_index)

    def _record_latency(self, started: float, frame_data: FrameData) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        self.stats.last_latency_ms = elapsed_ms
        self.stats.total_latency_ms += elapsed_ms

        budget = self.config.loop.frame_budget_ms
        if budget and elapsed_ms > budget:
            self.stats.budget_overruns += 1
            logging.warning(
                f"Frame {frame_data.frame_index} took {elapsed_ms:.1f}ms (budget {budget:.0f}ms)"
            )

    def _poll_cancellation(self) -> None:
        """Check the cancel key and external stop request."""
        timeout_ms = self.session.source.poll_override_ms
        if timeout_ms is None:
            timeout_ms = self.config.display.poll_ms
        key = self.session.renderer.poll_key(timeout_ms)
        if key == self._cancel_key:
            logging.info(f"Cancel key '{self.config.display.cancel_key}' pressed")
            self._transition_stop("cancel_key")
        elif self._stop_requested:
            logging.info("Stop requested")
            self._transition_stop("stop_requested")

    def _transition_stop(self, reason: str) -> None:
        if self.state is LoopState.STOPPED:
            return
        self.state = LoopState.STOPPED
        self.stats.stop_reason = reason

    def _handle_periodic_logging(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.loop.stats_log_interval:
            logging.info(
                f"Loop stats: frames={self.stats.frames_read}, "
                f"processed={self.stats.frames_processed}, skipped={self.stats.frames_skipped}, "
                f"detections={self.stats.detection_count}, "
                f"mean_latency={self.stats.mean_latency_ms:.1f}ms"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        """Release the source and display."""
        self._transition_stop(self.stats.stop_reason or "error")

        try:
            self.session.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        self.session.renderer.close()

        logging.info(
            f"Detection loop stopped: reason={self.stats.stop_reason}, "
            f"frames={self.stats.frames_read}, skipped={self.stats.frames_skipped}"
        )
