"""
Pin drivers.

Two ways of getting a PWM signal onto a pin:

- PiBlasterDriver writes ``<pin>=<value>`` lines to the pi-blaster daemon's
  command stream. No handle is kept between commands.
- GPIODriver programs the pin directly through RPi.GPIO and owns it from
  open() until close().
"""

import logging
import os

from servor.config import PI_BLASTER

logger = logging.getLogger(__name__)


class DriverError(IOError):
    """A command could not be delivered to the pin."""


class HardwareError(DriverError):
    """The pin could not be acquired."""


class PiBlasterDriver:
    def __init__(self, pin: int, path: str = PI_BLASTER):
        self.pin = pin
        self.path = path

    def apply(self, position: float) -> None:
        self.send(self.pin, position)

    def send(self, pin: int, value: float) -> None:
        """Append one ``pin=value`` line to the command stream."""
        line = f"{pin}={value:f}\n"
        try:
            # The daemon owns the stream; never create it.
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND)
            with os.fdopen(fd, "w") as stream:
                stream.write(line)
        except OSError as e:
            raise DriverError(f"writing {line.strip()!r} to {self.path}: {e}") from e


class GPIODriver:
    """
    ``scale`` turns a step index into duty-cycle units; apply() sends
    ``position * scale`` over the denominator given to configure().
    """

    def __init__(self, pin: int, scale: int = 1, gpio=None):
        self.pin = pin
        self.scale = scale
        self.pwm = None
        self.denominator = None
        self._gpio = gpio

    def apply(self, position: int) -> None:
        if self.denominator is None:
            raise DriverError(f"pin {self.pin} is not configured")
        self.set_duty_cycle(position * self.scale, self.denominator)

    def open(self) -> None:
        """Claim the pin as a BCM output."""
        if self._gpio is None:
            try:
                import RPi.GPIO as GPIO
            except (ImportError, RuntimeError) as e:
                raise HardwareError(f"RPi.GPIO is not usable on this machine: {e}") from e
            self._gpio = GPIO

        try:
            self._gpio.setmode(self._gpio.BCM)
            self._gpio.setup(self.pin, self._gpio.OUT)
        except RuntimeError as e:
            raise HardwareError(f"cannot acquire pin {self.pin}: {e}") from e

    def configure(self, frequency: int, denominator: int) -> None:
        """Start PWM at ``frequency`` Hz with the signal held low."""
        if self._gpio is None:
            raise HardwareError("pin is not open")
        self.pwm = self._gpio.PWM(self.pin, frequency)
        self.pwm.start(0)
        self.denominator = denominator
        logger.debug("pin %d: pwm at %d Hz, duty denominator %d", self.pin, frequency, denominator)

    def set_duty_cycle(self, numerator: int, denominator: int) -> None:
        if self.pwm is None:
            raise DriverError(f"pin {self.pin} is not configured")
        try:
            self.pwm.ChangeDutyCycle(100.0 * numerator / denominator)
        except (RuntimeError, ValueError) as e:
            raise DriverError(f"setting duty cycle {numerator}/{denominator} on pin {self.pin}: {e}") from e

    def close(self) -> None:
        """Park the pin at 0% duty and give it back."""
        if self._gpio is None:
            return
        try:
            if self.pwm is not None:
                self.pwm.ChangeDutyCycle(0)
                self.pwm.stop()
        finally:
            self.pwm = None
            self._gpio.cleanup(self.pin)
