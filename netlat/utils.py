import collections
import socket
import time

from netlat.constants import DEFAULT_PORT


class Endpoint(collections.namedtuple("Endpoint", "host port ipversion")):
    __slots__ = ()

    @property
    def family(self):
        return socket.AF_INET6 if self.ipversion == 6 else socket.AF_INET

    @property
    def sockaddr(self):
        return (self.host, self.port)

    def __str__(self):
        if self.ipversion == 6:
            return "[%s]:%d" % (self.host, self.port)
        return "%s:%d" % (self.host, self.port)


def _check_ip(ip, ipversion):
    family = socket.AF_INET6 if ipversion == 6 else socket.AF_INET
    try:
        socket.inet_pton(family, ip)
    except (OSError, ValueError):
        raise ValueError("%r is not a valid IPv%d address" % (ip, ipversion))


def _check_port(port):
    try:
        port = int(port)
    except ValueError:
        raise ValueError("%r is not a valid port" % port)
    if not 0 <= port <= 65535:
        raise ValueError("port %d out of range [0..65535]" % port)
    return port


def parse_addr(addr, port=DEFAULT_PORT):
    """ Parse IP addresses and ports into an Endpoint.
        Works with:
            IPv6 address with and without port;
            IPv4 address with and without port;
            ':port' and '' (any IPv4 address).
    """
    addr = addr.strip()
    if addr == '':
        # no address given (any local IPv4 address)
        return Endpoint("", _check_port(port), 4)
    elif ']:' in addr:
        # IPv6 address with port
        ip, port = addr.rsplit(':', 1)
        ip, ipversion = ip.strip('[]'), 6
    elif ']' in addr or addr.startswith('['):
        # IPv6 address without port
        ip, ipversion = addr.strip('[]'), 6
    elif addr.count(':') > 1:
        # IPv6 address without port
        ip, ipversion = addr, 6
    elif ':' in addr:
        # IPv4 address with port (empty address means any)
        ip, port = addr.split(':')
        ipversion = 4
    else:
        # IPv4 address without port
        ip, ipversion = addr, 4

    if ip:
        _check_ip(ip, ipversion)
    return Endpoint(ip, _check_port(port), ipversion)


def endpoint_of(sock):
    """Endpoint a socket is bound to (resolves port 0)."""
    sockaddr = sock.getsockname()
    ipversion = 6 if sock.family == socket.AF_INET6 else 4
    return Endpoint(sockaddr[0], sockaddr[1], ipversion)


def peer_str(sockaddr):
    if sockaddr is None:
        return "-"
    if ":" in sockaddr[0]:
        return "[%s]:%d" % (sockaddr[0], sockaddr[1])
    return "%s:%d" % (sockaddr[0], sockaddr[1])


def now_ns():
    return time.perf_counter_ns()


def format_time(ms):
    if abs(ms) > 60000:
        return "%7.1fmin" % float(ms / 60000)
    if abs(ms) > 10000:
        return "%7.1fsec" % float(ms / 1000)
    if abs(ms) > 1000:
        return "%7.2fsec" % float(ms / 1000)
    if abs(ms) > 1:
        return "%8.2fms" % ms
    return "%8dus" % int(ms * 1000)
