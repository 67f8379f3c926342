import logging
import socket
import threading

import pytest

from netlat.echoserver import TcpEchoServer, UdpEchoServer
from netlat.utils import Endpoint


LOOPBACK = Endpoint("127.0.0.1", 0, 4)


class Worker(threading.Thread):
    """Run a blocking call in the background and keep its outcome."""

    def __init__(self, target, *args):
        threading.Thread.__init__(self, daemon=True)
        self.target = target
        self.args = args
        self.result = None
        self.error = None

    def run(self):
        try:
            self.result = self.target(*self.args)
        except Exception as e:
            self.error = e

    def outcome(self, timeout=10):
        self.join(timeout)
        assert not self.is_alive(), "worker did not finish in %ss" % timeout
        if self.error is not None:
            raise self.error
        return self.result


def free_endpoint():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return Endpoint("127.0.0.1", s.getsockname()[1], 4)


def recv_exact_timeout(sock, size, timeout=5):
    sock.settimeout(timeout)
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


@pytest.fixture
def loopback():
    return LOOPBACK


@pytest.fixture
def tcp_echo_server():
    server = TcpEchoServer(LOOPBACK, max_data_size=4096)
    server.start()
    yield server
    server.stop()
    server.join(1)


@pytest.fixture
def udp_echo_server():
    server = UdpEchoServer(LOOPBACK, max_data_size=65536)
    server.start()
    yield server
    server.stop()
    server.join(1)


@pytest.fixture
def netlat_logs(caplog):
    # the CLI turns propagation off when it installs the click handler
    logger = logging.getLogger("netlat")
    propagate = logger.propagate
    logger.propagate = True
    caplog.set_level(logging.DEBUG, logger="netlat")
    yield caplog
    logger.propagate = propagate
