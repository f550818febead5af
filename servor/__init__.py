"""Step a servo left and right over HTTP."""

__version__ = "0.1.0"
