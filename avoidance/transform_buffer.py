"""Time-stamped buffer of frame transforms with interpolated lookup."""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from avoidance.conversions import Quaternion

logger = logging.getLogger(__name__)

_STARTUP_QUIET_S = 3.0


class LogLevel(enum.Enum):
    ERROR = logging.ERROR
    WARN = logging.WARNING
    INFO = logging.INFO
    DEBUG = logging.DEBUG


@dataclass(eq=False)
class StampedTransform:
    """A rigid transform (translation and rotation) valid at time stamp, in seconds."""

    stamp: float
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: Quaternion = field(default_factory=Quaternion.identity)

    def __post_init__(self) -> None:
        self.origin = np.asarray(self.origin, dtype=float).reshape(3).copy()


class TransformLookupError(LookupError):
    """Raised when a transform cannot be retrieved from the buffer."""


class TransformBuffer:
    """Keeps recent transforms per frame pair and interpolates between them."""

    def __init__(
        self,
        buffer_size_s: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._buffer: dict[str, deque[StampedTransform]] = {}
        self._lock = threading.Lock()
        self._buffer_size = float(buffer_size_s)
        self._clock = clock
        self._startup_time = clock()

    @staticmethod
    def _key(source_frame: str, target_frame: str) -> str:
        return f"{source_frame}_to_{target_frame}"

    def _log(self, level: LogLevel, msg: str) -> None:
        # Stay quiet while the transforms are still arriving at startup.
        if self._clock() - self._startup_time > _STARTUP_QUIET_S:
            logger.log(level.value, "%s", msg)

    @staticmethod
    def _interpolate(
        earlier: StampedTransform, later: StampedTransform, stamp: float
    ) -> StampedTransform | None:
        if stamp > later.stamp or stamp < earlier.stamp:
            return None
        tau = (stamp - earlier.stamp) / (later.stamp - earlier.stamp)
        translation = earlier.origin * (1.0 - tau) + later.origin * tau
        rotation = earlier.rotation.slerp(later.rotation, tau)
        return StampedTransform(stamp, translation, rotation)

    def insert_transform(
        self, source_frame: str, target_frame: str, transform: StampedTransform
    ) -> bool:
        """Buffer transform; False if it is not newer than the last one buffered."""
        with self._lock:
            queue = self._buffer.setdefault(self._key(source_frame, target_frame), deque())
            if queue and not queue[-1].stamp < transform.stamp:
                return False
            queue.append(transform)
            while transform.stamp - queue[0].stamp > self._buffer_size:
                queue.popleft()
            return True

    def get_transform(
        self, source_frame: str, target_frame: str, time: float
    ) -> StampedTransform:
        """Transform between the frames at the given time, interpolated from the buffer."""
        with self._lock:
            queue = self._buffer.get(self._key(source_frame, target_frame))
            if queue is None:
                msg = "TF Buffer: could not retrieve requested transform from buffer, unregistered"
                self._log(LogLevel.ERROR, msg)
                raise TransformLookupError(msg)
            if not queue:
                msg = "TF Buffer: could not retrieve requested transform from buffer, buffer is empty"
                self._log(LogLevel.WARN, msg)
                raise TransformLookupError(msg)
            if queue[-1].stamp < time:
                msg = (
                    "TF Buffer: could not retrieve requested transform from buffer, "
                    "tf has not yet arrived"
                )
                self._log(LogLevel.DEBUG, msg)
                raise TransformLookupError(msg)
            if queue[0].stamp > time:
                msg = (
                    "TF Buffer: could not retrieve requested transform from buffer, "
                    "tf has already been dropped from buffer"
                )
                self._log(LogLevel.WARN, msg)
                raise TransformLookupError(msg)

            newest_first = reversed(queue)
            later = next(newest_first)
            for earlier in newest_first:
                if earlier.stamp <= time:
                    result = self._interpolate(earlier, later, time)
                    if result is None:
                        msg = "TF Buffer: could not interpolate transform"
                        self._log(LogLevel.WARN, msg)
                        raise TransformLookupError(msg)
                    return result
                later = earlier
            raise TransformLookupError(
                "TF Buffer: could not retrieve requested transform from buffer"
            )