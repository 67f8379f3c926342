from netlat.constants import TCP_MAX_DATA_SIZE_DEFAULT, UDP_MAX_DATA_SIZE_DEFAULT
from netlat.session import tcpSession, udpSession
from netlat.utils import peer_str

import logging
logger = logging.getLogger(__name__)


class TcpEchoServer(tcpSession):
    """Write every read back to the same connection, unmodified.

    One handler thread per accepted connection. Each handler owns its own
    buffer, so concurrent connections never see each other's bytes.
    """

    def __init__(self, endpoint, max_data_size=TCP_MAX_DATA_SIZE_DEFAULT):
        if max_data_size < 1:
            raise ValueError("max_data_size must be at least 1 byte")
        self.max_data_size = max_data_size
        tcpSession.__init__(self, endpoint, name="tcp-server")

    def serve(self, conn, peer):
        buf = bytearray(self.max_data_size)
        view = memoryview(buf)
        with conn:
            try:
                while True:
                    size = conn.recv_into(buf)
                    if size == 0:
                        break
                    conn.sendall(view[:size])
            except OSError as e:
                logger.debug("Connection %s failed: %s", peer_str(peer), e)
        logger.info("Connection from %s closed", peer_str(peer))


class UdpEchoServer(udpSession):
    """Send every datagram back to its source address, one at a time."""

    def __init__(self, endpoint, max_data_size=UDP_MAX_DATA_SIZE_DEFAULT):
        if max_data_size < 1:
            raise ValueError("max_data_size must be at least 1 byte")
        self.max_data_size = max_data_size
        udpSession.__init__(self, endpoint, name="udp-server")

    def run(self):
        buf = bytearray(self.max_data_size)
        view = memoryview(buf)

        while self.running:
            try:
                size, address = self.recvfrom_into(buf)
                if not self.running:
                    break
                self.sendto(view[:size], address)
            except OSError as e:
                if self.running:
                    logger.critical("*** UDP echo failed: %s", e)
                    self.error = e
                break

        logger.info("%s stopped", self.name)
