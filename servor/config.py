"""
Startup configuration for servor.

Everything the process needs is decided once from the command line and
frozen into a Settings instance; nothing here changes after startup.
"""

import argparse
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from servor.controller import index_bounds

# ---------------- DEFAULTS ----------------
DEFAULT_LISTEN = ":8080"
DEFAULT_PIN = 18
DEFAULT_FREQUENCY = 50
PI_BLASTER = "/dev/pi-blaster"

DRIVER_BLASTER = "blaster"
DRIVER_GPIO = "gpio"

# Per-driver defaults for (min, max, steps).
# blaster: PWM value in [0, 1]; gpio: duty-cycle percent.
DRIVER_DEFAULTS = {
    DRIVER_BLASTER: (0.0, 1.0, 20),
    DRIVER_GPIO: (2.0, 13.0, 100),
}


class ConfigError(ValueError):
    """Raised when the startup configuration cannot be used."""


@dataclass(frozen=True)
class Settings:
    listen: str = DEFAULT_LISTEN
    pin: int = DEFAULT_PIN
    driver: str = DRIVER_BLASTER
    min: float = 0.0
    max: float = 1.0
    steps: int = 20
    frequency: int = DEFAULT_FREQUENCY
    blaster_path: str = PI_BLASTER
    log_level: str = "INFO"

    def validate(self) -> "Settings":
        if self.driver not in DRIVER_DEFAULTS:
            raise ConfigError(f"unknown driver {self.driver!r}")
        if self.min >= self.max:
            raise ConfigError(
                f"--min must be less than --max; got {self.min:f} and {self.max:f}, respectively"
            )
        if self.steps <= 0:
            raise ConfigError(f"--steps must be positive; got {self.steps}")
        if self.driver == DRIVER_GPIO:
            if self.frequency <= 0:
                raise ConfigError(f"--frequency must be positive; got {self.frequency}")
            if self.min < 0 or self.max > 100:
                raise ConfigError("--min and --max are duty-cycle percentages and must lie in [0, 100]")
            lower, upper = index_bounds(self.steps, self.min, self.max)
            if lower >= upper:
                raise ConfigError(
                    f"--min and --max collapse to step index {lower} with --steps {self.steps}; "
                    "raise --steps or widen the range"
                )
        parse_listen(self.listen)
        return self

    @property
    def address(self) -> Tuple[str, int]:
        return parse_listen(self.listen)


def parse_listen(listen: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host means all interfaces."""
    host, sep, port = listen.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address must look like host:port; got {listen!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"invalid port in listen address {listen!r}") from None
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"port out of range in listen address {listen!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="servor",
        description="Step a servo left and right over HTTP.",
    )
    parser.add_argument("--listen", default=DEFAULT_LISTEN,
                        help="The address on which internal server runs.")
    parser.add_argument("--pin", type=int, default=DEFAULT_PIN,
                        help="The number of the BCM2835 pin to use.")
    parser.add_argument("--driver", choices=sorted(DRIVER_DEFAULTS), default=DRIVER_BLASTER,
                        help="Drive the pin through the pi-blaster daemon or directly with RPi.GPIO.")
    parser.add_argument("--min", type=float, default=None,
                        help="The minimum acceptable PWM value (duty-cycle percent for gpio); "
                             "must be less than --max.")
    parser.add_argument("--max", type=float, default=None,
                        help="The maximum acceptable PWM value (duty-cycle percent for gpio); "
                             "must be more than --min.")
    parser.add_argument("--steps", type=int, default=None,
                        help="The number of steps between --min and --max.")
    parser.add_argument("--frequency", type=int, default=DEFAULT_FREQUENCY,
                        help="The PWM frequency in Hz (gpio driver only).")
    parser.add_argument("--blaster-path", default=PI_BLASTER,
                        help="The pi-blaster command stream.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging threshold.")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    min_default, max_default, steps_default = DRIVER_DEFAULTS[args.driver]
    return Settings(
        listen=args.listen,
        pin=args.pin,
        driver=args.driver,
        min=min_default if args.min is None else args.min,
        max=max_default if args.max is None else args.max,
        steps=steps_default if args.steps is None else args.steps,
        frequency=args.frequency,
        blaster_path=args.blaster_path,
        log_level=args.log_level,
    ).validate()


def load_settings(argv: Optional[Sequence[str]] = None) -> Settings:
    """Parse ``argv`` into validated Settings, exiting with a usage error on bad input."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return settings_from_args(args)
    except ConfigError as exc:
        parser.error(str(exc))
