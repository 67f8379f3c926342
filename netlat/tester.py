import socket
import time

from netlat.constants import DATA_SIZE_DEFAULT, LISTEN_BACKLOG, REPEAT_DEFAULT, RETRY_INTERVAL_DEFAULT
from netlat.latencyclient import LatencyClient
from netlat.session import recv_exact
from netlat.utils import endpoint_of, peer_str

import logging
logger = logging.getLogger(__name__)


class DuplexTester(LatencyClient):
    """Round trips through an external relay using two connections.

    The receive leg is the one connection accepted on the local listener,
    the send leg is an outbound connection to the relay. The relay sits in
    between, so every payload leaves on one leg and comes back on the other.
    """

    def __init__(self, local, remote, data_size=DATA_SIZE_DEFAULT, repeat=REPEAT_DEFAULT,
                 generator=None, report=None, retry_interval=RETRY_INTERVAL_DEFAULT, max_attempts=None):
        LatencyClient.__init__(self, data_size, repeat, generator, report)
        self.remote = remote
        self.retry_interval = retry_interval
        self.max_attempts = max_attempts
        self.recv_socket = None
        self.send_socket = None

        self.listener = socket.socket(local.family, socket.SOCK_STREAM)
        self.listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.listener.bind(local.sockaddr)
            self.listener.listen(LISTEN_BACKLOG)
        except OSError:
            self.listener.close()
            raise
        self.address = endpoint_of(self.listener)
        logger.info("Listening on tcp://%s", self.address)

    def accept_receiver(self):
        conn, peer = self.listener.accept()
        self.listener.close()
        logger.info("Receive leg accepted from %s", peer_str(peer))
        self.recv_socket = conn
        return conn

    def connect_sender(self):
        """Poll connect(remote) every retry_interval until it succeeds."""
        attempt = 0
        while True:
            attempt += 1
            sock = socket.socket(self.remote.family, socket.SOCK_STREAM)
            try:
                sock.connect(self.remote.sockaddr)
            except OSError as e:
                sock.close()
                logger.warning("trying to connect tcp://%s (attempt %d): %s", self.remote, attempt, e)
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    raise ConnectionError("could not connect to tcp://%s after %d attempts"
                                          % (self.remote, attempt))
                time.sleep(self.retry_interval)
                continue
            logger.info("connected to tcp://%s", self.remote)
            self.send_socket = sock
            return sock

    def transmit(self, data):
        self.send_socket.sendall(data)

    def receive_into(self, buf):
        return recv_exact(self.recv_socket, buf)

    def close(self):
        for sock in (self.send_socket, self.recv_socket, self.listener):
            if sock is not None:
                sock.close()

    def run(self):
        try:
            self.accept_receiver()
            self.connect_sender()
        except Exception:
            self.close()
            raise
        return LatencyClient.run(self)
