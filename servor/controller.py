"""
Position controller.

The controller owns the logical position of the servo and is the only thing
allowed to talk to the pin driver. Every directional command runs its
read-modify-write and the hardware write under one lock, so two requests
can never interleave their writes.

How a step changes the position is up to the range model:

- ContinuousRange: floating point value, clamped into [lower, upper] after
  every change (pi-blaster).
- SteppedRange: integer step index; a move only happens when there is room
  for it (direct PWM).

If the driver fails the new position is kept; logical and physical state
stay apart until the next command gets through.
"""

import logging
import threading

logger = logging.getLogger(__name__)

# Tick rate used to size one step in hardware duty-cycle units (1 us ticks).
PWM_RESOLUTION_HZ = 1_000_000


def index_bounds(steps: int, min_pct: float, max_pct: float):
    """Duty-cycle percentages as step indices."""
    return int(steps * min_pct / 100), int(steps * max_pct / 100)


class ContinuousRange:
    def __init__(self, lower: float, upper: float, steps: int):
        if lower >= upper:
            raise ValueError(f"lower bound must be less than upper; got {lower:f} and {upper:f}")
        if steps <= 0:
            raise ValueError(f"steps must be positive; got {steps}")
        self.lower = lower
        self.upper = upper
        self.step = (upper - lower) / steps
        self.initial = 0.0

    def left(self, position: float) -> float:
        return self.clamp(position + self.step)

    def right(self, position: float) -> float:
        return self.clamp(position - self.step)

    def clamp(self, position: float) -> float:
        if position > self.upper:
            position = self.upper
        if position < self.lower:
            position = self.lower
        return position


class SteppedRange:
    def __init__(self, min_pct: float, max_pct: float, steps: int, frequency: int):
        if steps <= 0:
            raise ValueError(f"steps must be positive; got {steps}")
        if frequency <= 0:
            raise ValueError(f"frequency must be positive; got {frequency}")
        self.steps = steps
        self.frequency = frequency
        self.lower, self.upper = index_bounds(steps, min_pct, max_pct)
        if self.lower >= self.upper:
            raise ValueError(f"bounds collapse to index range [{self.lower}, {self.upper}]")
        self.scale = max(1, PWM_RESOLUTION_HZ // (frequency * steps))
        self.initial = self.lower

    @property
    def denominator(self) -> int:
        return self.steps * self.scale

    def left(self, position: int) -> int:
        if position < self.upper:
            return position + 1
        return position

    def right(self, position: int) -> int:
        if position > self.lower:
            return position - 1
        return position


class Servo:
    """Lock-guarded directional moves over a range model and a pin driver."""

    def __init__(self, driver, model):
        self.driver = driver
        self.model = model
        self._position = model.initial
        self._lock = threading.Lock()

    @property
    def position(self):
        with self._lock:
            return self._position

    def move_left(self):
        """One step toward the upper bound, then apply. Returns the new position."""
        return self._move(self.model.left, "left")

    def move_right(self):
        """One step toward the lower bound, then apply. Returns the new position."""
        return self._move(self.model.right, "right")

    def _move(self, step, direction):
        with self._lock:
            self._position = step(self._position)
            position = self._position
            self.driver.apply(position)
        logger.debug("moved %s to %s", direction, position)
        return position
