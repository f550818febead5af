"""
Process entry point.

    servor --listen :8080 --pin 18 --min 0 --max 1 --steps 20
    servor --driver gpio --pin 18 --frequency 50 --min 2 --max 13 --steps 100
"""

import logging

from werkzeug.serving import make_server

from servor.config import DRIVER_GPIO, load_settings
from servor.controller import ContinuousRange, Servo, SteppedRange
from servor.drivers import GPIODriver, HardwareError, PiBlasterDriver
from servor.metrics import Metrics
from servor.supervisor import ShutdownError, Supervisor
from servor.web import create_app

logger = logging.getLogger("servor")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # Werkzeug logs every request at INFO, unknown routes included.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def build_servo(settings) -> Servo:
    """Construct the controller for the configured driver (pin not yet acquired)."""
    if settings.driver == DRIVER_GPIO:
        model = SteppedRange(settings.min, settings.max, settings.steps, settings.frequency)
        return Servo(GPIODriver(settings.pin, scale=model.scale), model)
    model = ContinuousRange(settings.min, settings.max, settings.steps)
    return Servo(PiBlasterDriver(settings.pin, settings.blaster_path), model)


def acquire(servo: Servo) -> None:
    """Claim the pin for drivers that hold it for the process lifetime."""
    if isinstance(servo.driver, GPIODriver):
        servo.driver.open()
        servo.driver.configure(servo.model.frequency, servo.model.denominator)


def release(servo: Servo) -> None:
    if isinstance(servo.driver, GPIODriver):
        servo.driver.close()


def main(argv=None) -> int:
    settings = load_settings(argv)
    setup_logging(settings.log_level)

    servo = build_servo(settings)
    logger.info(
        "driving pin %d with %s driver: min=%s max=%s steps=%d",
        settings.pin, settings.driver, settings.min, settings.max, settings.steps,
    )

    try:
        acquire(servo)
    except HardwareError as e:
        logger.critical("cannot acquire pin %d: %s", settings.pin, e)
        return 1

    try:
        host, port = settings.address
        app = create_app(servo, Metrics())
        try:
            server = make_server(host, port, app, threaded=True)
        except OSError as e:
            logger.critical("cannot listen on %s: %s", settings.listen, e)
            return 1

        logger.info("starting the HTTP server on %s", settings.listen)
        supervisor = Supervisor(server)
        try:
            supervisor.run()
        except ShutdownError as e:
            logger.critical("%s", e)
            return 1
        except Exception:
            logger.exception("HTTP server failed")
            return 1
        return 0
    finally:
        release(servo)
