import socket
import threading

import pytest

from conftest import recv_exact_timeout
from netlat.echoserver import TcpEchoServer, UdpEchoServer
from netlat.payload import RandomPayloadGenerator
from netlat.utils import Endpoint


@pytest.mark.parametrize("size", [1, 17, 1024, 4096, 50000])
def test_tcp_echo_returns_same_bytes(tcp_echo_server, size):
    payload = RandomPayloadGenerator(seed=size).payload(size)
    with socket.create_connection(tcp_echo_server.address.sockaddr, timeout=5) as s:
        s.sendall(payload)
        assert recv_exact_timeout(s, size) == payload


def test_tcp_echo_several_messages_in_order(tcp_echo_server):
    with socket.create_connection(tcp_echo_server.address.sockaddr, timeout=5) as s:
        for i in range(10):
            message = b"message-%d" % i
            s.sendall(message)
            assert recv_exact_timeout(s, len(message)) == message


def test_tcp_echo_concurrent_connections_are_isolated(tcp_echo_server):
    results = {}

    def talk(n):
        payload = bytes([n]) * 3000 + RandomPayloadGenerator(seed=n).payload(997)
        with socket.create_connection(tcp_echo_server.address.sockaddr, timeout=5) as s:
            for _ in range(5):
                s.sendall(payload)
                if recv_exact_timeout(s, len(payload)) != payload:
                    results[n] = False
                    return
        results[n] = True

    threads = [threading.Thread(target=talk, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert results == {n: True for n in range(8)}


def test_tcp_echo_survives_client_disconnect(tcp_echo_server):
    s = socket.create_connection(tcp_echo_server.address.sockaddr, timeout=5)
    s.sendall(b"bye")
    s.close()

    with socket.create_connection(tcp_echo_server.address.sockaddr, timeout=5) as s:
        s.sendall(b"still there")
        assert recv_exact_timeout(s, 11) == b"still there"
    assert tcp_echo_server.is_alive()


def test_tcp_echo_stop(loopback):
    server = TcpEchoServer(loopback, max_data_size=16)
    server.start()
    server.stop()
    server.join(2)
    assert not server.is_alive()
    assert server.error is None


def test_tcp_echo_bind_failure_raises():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        with pytest.raises(OSError):
            TcpEchoServer(Endpoint("127.0.0.1", blocker.getsockname()[1], 4))


def test_invalid_max_data_size(loopback):
    with pytest.raises(ValueError):
        TcpEchoServer(loopback, max_data_size=0)
    with pytest.raises(ValueError):
        UdpEchoServer(loopback, max_data_size=0)


@pytest.mark.parametrize("size", [0, 1, 512, 8192])
def test_udp_echo_returns_same_datagram(udp_echo_server, size):
    payload = RandomPayloadGenerator(seed=size).payload(size)
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.settimeout(5)
        s.sendto(payload, udp_echo_server.address.sockaddr)
        data, address = s.recvfrom(65536)
    assert data == payload
    assert address == udp_echo_server.address.sockaddr


def test_udp_echo_replies_to_each_sender(udp_echo_server):
    a = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    b = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    with a, b:
        a.settimeout(5)
        b.settimeout(5)
        a.sendto(b"from a", udp_echo_server.address.sockaddr)
        b.sendto(b"from b", udp_echo_server.address.sockaddr)
        assert a.recv(100) == b"from a"
        assert b.recv(100) == b"from b"


def test_udp_echo_stop(loopback):
    server = UdpEchoServer(loopback, max_data_size=16)
    server.start()
    server.stop()
    server.join(2)
    assert not server.is_alive()
    assert server.error is None
