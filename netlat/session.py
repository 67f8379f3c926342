import socket
import threading

from netlat.constants import LISTEN_BACKLOG
from netlat.utils import endpoint_of, peer_str

import logging
logger = logging.getLogger(__name__)


def recv_exact(sock, buf):
    """Fill buf completely from a stream socket.

    Raises ConnectionError if the peer closes before buf is full.
    """
    view = memoryview(buf)
    total = len(view)
    offset = 0
    while offset < total:
        size = sock.recv_into(view[offset:])
        if size == 0:
            raise ConnectionError(
                "connection closed by peer after %d of %d bytes" % (offset, total))
        offset += size
    return total


def _shutdown(sock):
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # unconnected sockets report ENOTCONN but still wake blocked readers
        pass
    sock.close()


class tcpSession(threading.Thread):

    def __init__(self, endpoint, backlog=LISTEN_BACKLOG, name=None):
        threading.Thread.__init__(self, name=name, daemon=True)
        self.listen(endpoint, backlog)
        self.running = True
        self.error = None

    def listen(self, endpoint, backlog):
        logger.debug("listen(addr=%s, backlog=%d)", endpoint, backlog)
        self.socket = socket.socket(endpoint.family, socket.SOCK_STREAM)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.socket.bind(endpoint.sockaddr)
        self.socket.listen(backlog)
        self.address = endpoint_of(self.socket)
        logger.info("Listening on tcp://%s", self.address)

    def accept(self):
        conn, peer = self.socket.accept()
        logger.info("Accepted connection from %s", peer_str(peer))
        return conn, peer

    def serve(self, conn, peer):
        raise NotImplementedError

    def run(self):
        while self.running:
            try:
                conn, peer = self.accept()
            except OSError as e:
                if self.running:
                    logger.critical("*** Accept failed: %s", e)
                    self.error = e
                break
            threading.Thread(target=self.serve, args=(conn, peer), daemon=True,
                             name="%s-%s" % (self.name, peer_str(peer))).start()

        logger.info("%s stopped", self.name)

    def stop(self, signum=None, frame=None):
        logger.info("Stop %s", self.name)
        self.running = False
        _shutdown(self.socket)


class udpSession(threading.Thread):

    def __init__(self, endpoint, name=None):
        threading.Thread.__init__(self, name=name, daemon=True)
        self.bind(endpoint)
        self.running = True
        self.error = None

    def bind(self, endpoint):
        logger.debug("bind(addr=%s)", endpoint)
        self.socket = socket.socket(endpoint.family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.socket.bind(endpoint.sockaddr)
        self.address = endpoint_of(self.socket)
        logger.info("Wait to receive datagrams on udp://%s", self.address)

    def sendto(self, data, address):
        logger.debug("transmit: %d bytes to %s", len(data), peer_str(address))
        self.socket.sendto(data, address)

    def recvfrom_into(self, buf):
        size, address = self.socket.recvfrom_into(buf)
        logger.debug("received: %d bytes from %s", size, peer_str(address))
        return size, address

    def stop(self, signum=None, frame=None):
        logger.info("Stop %s", self.name)
        self.running = False
        _shutdown(self.socket)
