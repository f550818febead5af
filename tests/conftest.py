import threading
import time

import pytest

from servor.drivers import DriverError


class RecordingBlaster:
    """Stands in for PiBlasterDriver and remembers every command."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def apply(self, position):
        self.send(18, position)

    def send(self, pin, value):
        if self.fail:
            raise DriverError("pi-blaster is gone")
        self.sent.append((pin, value))


class FakePWM:
    def __init__(self, pin, frequency):
        self.pin = pin
        self.frequency = frequency
        self.duty = []
        self.running = False

    def start(self, duty):
        self.running = True
        self.duty.append(duty)

    def ChangeDutyCycle(self, duty):
        if not 0.0 <= duty <= 100.0:
            raise ValueError("dutycycle must have a value from 0.0 to 100.0")
        self.duty.append(duty)

    def stop(self):
        self.running = False


class FakeGPIO:
    """The bits of RPi.GPIO the driver touches."""

    BCM = 11
    OUT = 0

    def __init__(self, busy=False):
        self.busy = busy
        self.mode = None
        self.outputs = set()
        self.cleaned = []
        self.pwms = []

    def setmode(self, mode):
        self.mode = mode

    def setup(self, pin, direction):
        if self.busy:
            raise RuntimeError("No access to /dev/mem.  Try running as root!")
        self.outputs.add(pin)

    def PWM(self, pin, frequency):
        pwm = FakePWM(pin, frequency)
        self.pwms.append(pwm)
        return pwm

    def cleanup(self, pin=None):
        self.cleaned.append(pin)
        self.outputs.discard(pin)


class SlowDriver:
    """Records the positions it is given while checking nothing overlaps."""

    def __init__(self):
        self.calls = []
        self.active = 0
        self.overlapped = False
        self._guard = threading.Lock()

    def apply(self, position):
        self._record(position)

    def _record(self, value):
        with self._guard:
            self.active += 1
            if self.active > 1:
                self.overlapped = True
        time.sleep(0.001)
        self.calls.append(value)
        with self._guard:
            self.active -= 1


@pytest.fixture
def blaster():
    return RecordingBlaster()


@pytest.fixture
def fake_gpio():
    return FakeGPIO()


@pytest.fixture
def blaster_stream(tmp_path):
    path = tmp_path / "pi-blaster"
    path.write_text("")
    return path
