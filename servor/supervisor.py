"""
Run the HTTP server next to a signal listener and tear both down together.

Whichever finishes first, an interrupt/termination signal or the server
loop itself, the other is stopped. Stopping the server is bounded by
``timeout`` seconds; if it does not finish in time that is fatal.
"""

import logging
import signal
import threading

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 1.0


class ShutdownError(RuntimeError):
    """The server did not stop within the shutdown window."""


class Supervisor:
    def __init__(self, server, timeout: float = SHUTDOWN_TIMEOUT):
        self.server = server
        self.timeout = timeout
        self.error = None
        self.interrupted = False
        self._done = threading.Event()

    def interrupt(self, signum=None, _frame=None):
        """Ask the supervisor to stop; safe to call from a signal handler."""
        if signum is not None:
            logger.info("caught interrupt (%s)", signal.Signals(signum).name)
        self.interrupted = True
        self._done.set()

    def _serve(self):
        try:
            self.server.serve_forever()
        except Exception as e:
            self.error = e
        finally:
            self._done.set()

    def _shutdown(self):
        stopper = threading.Thread(target=self.server.shutdown, name="http-shutdown", daemon=True)
        stopper.start()
        stopper.join(self.timeout)
        if stopper.is_alive():
            raise ShutdownError(f"server did not shut down within {self.timeout:g}s")
        self.server.server_close()

    def run(self, install_signals: bool = True) -> None:
        """Block until interrupted or the server stops; re-raise server errors."""
        if install_signals:
            signal.signal(signal.SIGINT, self.interrupt)
            signal.signal(signal.SIGTERM, self.interrupt)

        serving = threading.Thread(target=self._serve, name="http-server", daemon=True)
        serving.start()

        # Short waits keep the main thread responsive to signals.
        while not self._done.wait(0.2):
            pass

        if self.interrupted:
            logger.info("shutting down internal server")
        elif self.error is None:
            logger.warning("internal server closed unexpectedly")

        self._shutdown()
        serving.join(self.timeout)

        if self.error is not None and not self.interrupted:
            raise self.error
