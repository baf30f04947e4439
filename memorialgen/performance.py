"""Frame-rate tracking used to pick a quality tier at runtime."""

import math
from collections import deque

SAMPLE_WINDOW = 60


class FrameRateMonitor:
    """Rolling average over the last *window* frame rates."""

    def __init__(self, window: int = SAMPLE_WINDOW):
        self.samples = deque(maxlen=window)

    def record(self, delta: float) -> None:
        """Record one frame of *delta* seconds. Non-positive deltas are ignored."""
        if not math.isfinite(delta) or delta <= 0:
            return
        self.samples.append(1.0 / delta)

    def average_fps(self) -> float:
        # No frames measured yet reads as the slowest tier
        if not self.samples:
            return 0.0
        return sum(self.samples) / len(self.samples)

    def quality_tier(self) -> str:
        fps = self.average_fps()
        if fps >= 55:
            return 'high'
        if fps >= 35:
            return 'medium'
        return 'low'

    def particle_multiplier(self) -> float:
        fps = self.average_fps()
        if fps >= 55:
            return 1.0
        if fps >= 45:
            return 0.7
        if fps >= 35:
            return 0.5
        return 0.3
