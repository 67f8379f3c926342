import socket
import threading

from netlat.constants import TCP_MAX_DATA_SIZE_DEFAULT, UDP_MAX_DATA_SIZE_DEFAULT
from netlat.session import tcpSession, udpSession
from netlat.utils import peer_str

import logging
logger = logging.getLogger(__name__)


class UpstreamClosedError(ConnectionError):
    pass


class SharedUpstream:
    """The single outbound connection of a TCP forwarder.

    Handlers only get an atomic sendall: one lock acquisition per batch, so
    writes from different handlers never interleave. The first failed send
    breaks the upstream for every handler.
    """

    def __init__(self, sock):
        self.socket = sock
        self.lock = threading.Lock()
        self.broken = None

    @classmethod
    def connect(cls, endpoint):
        sock = socket.socket(endpoint.family, socket.SOCK_STREAM)
        try:
            sock.connect(endpoint.sockaddr)
        except OSError:
            sock.close()
            raise
        logger.info("Connected upstream to tcp://%s", endpoint)
        return cls(sock)

    def sendall(self, data):
        with self.lock:
            if self.broken is not None:
                raise UpstreamClosedError("upstream connection failed earlier: %s" % self.broken)
            try:
                self.socket.sendall(data)
            except OSError as e:
                self.broken = e
                raise

    def close(self):
        # no lock: a handler may sit in sendall holding it; shutdown wakes it
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.socket.close()


class TcpForwarder(tcpSession):
    """Relay every local connection into one shared upstream connection.

    Bytes flow local -> remote only; nothing read from the remote side is
    routed back, so a session assumes a single active local peer.
    """

    def __init__(self, local, remote, max_data_size=TCP_MAX_DATA_SIZE_DEFAULT):
        if max_data_size < 1:
            raise ValueError("max_data_size must be at least 1 byte")
        self.max_data_size = max_data_size
        self.remote = remote
        tcpSession.__init__(self, local, name="tcp-forwarder")
        try:
            self.upstream = SharedUpstream.connect(remote)
        except OSError:
            self.socket.close()
            raise

    def serve(self, conn, peer):
        buf = bytearray(self.max_data_size)
        view = memoryview(buf)
        with conn:
            try:
                while True:
                    size = conn.recv_into(buf)
                    if size == 0:
                        break
                    self.upstream.sendall(view[:size])
                    logger.debug("forwarded: %d bytes from %s", size, peer_str(peer))
            except OSError as e:
                logger.debug("Connection %s failed: %s", peer_str(peer), e)
                if self.upstream.broken is not None and self.running:
                    # no upstream left to relay into
                    logger.critical("*** Upstream tcp://%s failed: %s", self.remote, self.upstream.broken)
                    self.error = self.upstream.broken
                    self.stop()
        logger.info("Connection from %s closed", peer_str(peer))

    def stop(self, signum=None, frame=None):
        tcpSession.stop(self, signum, frame)
        self.upstream.close()


class UdpForwarder(udpSession):
    """Send every datagram received on the local socket to the fixed remote."""

    def __init__(self, local, remote, max_data_size=UDP_MAX_DATA_SIZE_DEFAULT):
        if max_data_size < 1:
            raise ValueError("max_data_size must be at least 1 byte")
        if local.family != remote.family:
            raise ValueError("local %s and remote %s use different IP versions" % (local, remote))
        self.max_data_size = max_data_size
        self.remote = remote
        udpSession.__init__(self, local, name="udp-forwarder")

    def run(self):
        buf = bytearray(self.max_data_size)
        view = memoryview(buf)

        while self.running:
            try:
                size, _address = self.recvfrom_into(buf)
                if not self.running:
                    break
                self.sendto(view[:size], self.remote.sockaddr)
            except OSError as e:
                if self.running:
                    logger.critical("*** UDP forward failed: %s", e)
                    self.error = e
                break

        logger.info("%s stopped", self.name)
