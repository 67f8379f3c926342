import collections
import socket

import click

from netlat.constants import DATA_SIZE_DEFAULT, REPEAT_DEFAULT, UDP_MAX_PAYLOAD
from netlat.payload import RandomPayloadGenerator
from netlat.session import recv_exact
from netlat.utils import now_ns

import logging
logger = logging.getLogger(__name__)


RoundTripSample = collections.namedtuple("RoundTripSample", "seq size elapsed_us")


class PayloadMismatchError(AssertionError):

    def __init__(self, seq, sent, received):
        self.seq = seq
        self.offset = next(
            (i for i, (a, b) in enumerate(zip(sent, received)) if a != b),
            min(len(sent), len(received)))
        AssertionError.__init__(
            self, "round trip %d: reply differs from request at byte %d (%d bytes sent, %d received)"
            % (seq, self.offset, len(sent), len(received)))


def print_sample(sample):
    click.echo("%d us elapsed" % sample.elapsed_us)


class LatencyClient:
    """Timed round trips of random payloads.

    Subclasses provide transmit() and receive_into(); the loop, the buffers
    and the byte-exact check live here. Every error ends the run.
    """

    # extra receive room, so an oversized reply is seen as one
    reply_slack = 0

    def __init__(self, data_size=DATA_SIZE_DEFAULT, repeat=REPEAT_DEFAULT, generator=None, report=None):
        if data_size < 0:
            raise ValueError("data_size must not be negative")
        if repeat < 0:
            raise ValueError("repeat must not be negative")
        self.data_size = data_size
        self.repeat = repeat
        self.generator = generator if generator is not None else RandomPayloadGenerator()
        self.report = report if report is not None else print_sample
        self.data = bytearray(data_size)
        self.reply = bytearray(data_size + self.reply_slack)
        self.received = memoryview(self.reply)[:data_size]

    def transmit(self, data):
        raise NotImplementedError

    def receive_into(self, buf):
        """Receive one full reply into buf, return the number of bytes."""
        raise NotImplementedError

    def close(self):
        pass

    def run(self):
        done = 0
        try:
            for seq in range(self.repeat):
                self.generator.fill(self.data)

                start = now_ns()
                self.transmit(self.data)
                size = self.receive_into(self.reply)
                elapsed = now_ns() - start

                if size != self.data_size or self.received != self.data:
                    raise PayloadMismatchError(seq, bytes(self.data), bytes(self.reply[:size]))

                self.report(RoundTripSample(seq, size, elapsed // 1000))
                done += 1
        finally:
            self.close()
        logger.info("%d round trips of %d bytes completed", done, self.data_size)
        return done


class TcpLatencyClient(LatencyClient):

    def __init__(self, remote, data_size=DATA_SIZE_DEFAULT, repeat=REPEAT_DEFAULT, generator=None, report=None):
        LatencyClient.__init__(self, data_size, repeat, generator, report)
        self.remote = remote
        self.socket = socket.socket(remote.family, socket.SOCK_STREAM)
        try:
            self.socket.connect(remote.sockaddr)
        except OSError:
            self.socket.close()
            raise
        logger.info("Connected to tcp://%s", remote)

    def transmit(self, data):
        self.socket.sendall(data)

    def receive_into(self, buf):
        return recv_exact(self.socket, buf)

    def close(self):
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("shutdown(tcp://%s): %s", self.remote, e)
        self.socket.close()


class UdpLatencyClient(LatencyClient):
    """One datagram out, one datagram back per round trip.

    A reply datagram shorter or longer than the request counts as a mismatch.
    """

    reply_slack = 1

    def __init__(self, local, remote=None, data_size=DATA_SIZE_DEFAULT, repeat=REPEAT_DEFAULT,
                 generator=None, report=None):
        if data_size > UDP_MAX_PAYLOAD:
            raise ValueError("data_size %d exceeds the largest UDP payload (%d bytes)"
                             % (data_size, UDP_MAX_PAYLOAD))
        LatencyClient.__init__(self, data_size, repeat, generator, report)
        self.local = local
        self.remote = remote
        self.socket = socket.socket(local.family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            self.socket.bind(local.sockaddr)
            if remote is not None:
                self.socket.connect(remote.sockaddr)
        except OSError:
            self.socket.close()
            raise
        logger.info("Bound to udp://%s (remote %s)", local, remote)

    def transmit(self, data):
        self.socket.send(data)

    def receive_into(self, buf):
        return self.socket.recv_into(buf, len(buf))

    def close(self):
        self.socket.close()
