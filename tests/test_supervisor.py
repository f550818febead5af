import threading

import pytest

from servor.supervisor import ShutdownError, Supervisor


class FakeServer:
    def __init__(self, error=None, stuck=False):
        self.error = error
        self.stuck = stuck
        self.closed = False
        self.released = threading.Event()
        self._stop = threading.Event()

    def serve_forever(self):
        if self.error is not None:
            raise self.error
        self._stop.wait()

    def shutdown(self):
        if self.stuck:
            self.released.wait(5)
        self._stop.set()

    def server_close(self):
        self.closed = True


def run_in_background(supervisor):
    outcome = {}

    def target():
        try:
            supervisor.run(install_signals=False)
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=target)
    thread.start()
    return thread, outcome


def test_interrupt_shuts_server_down():
    server = FakeServer()
    supervisor = Supervisor(server)
    thread, outcome = run_in_background(supervisor)

    supervisor.interrupt()
    thread.join(5)

    assert not thread.is_alive()
    assert outcome == {}
    assert server.closed


def test_server_failure_is_reraised():
    server = FakeServer(error=OSError("address in use"))
    with pytest.raises(OSError, match="address in use"):
        Supervisor(server).run(install_signals=False)
    assert server.closed


def test_stuck_shutdown_is_fatal():
    server = FakeServer(stuck=True)
    supervisor = Supervisor(server, timeout=0.1)
    thread, outcome = run_in_background(supervisor)

    supervisor.interrupt()
    thread.join(5)
    server.released.set()

    assert isinstance(outcome.get("error"), ShutdownError)
    assert not server.closed
