#!/usr/bin/env python3

from netlat.constants import (DATA_SIZE_DEFAULT, REPEAT_DEFAULT, TCP_MAX_DATA_SIZE_DEFAULT, TCP_SERVER_ADDR_DEFAULT,
                              UDP_CLIENT_ADDR_DEFAULT, UDP_MAX_DATA_SIZE_DEFAULT, UDP_SERVER_ADDR_DEFAULT)
from netlat.echoserver import TcpEchoServer, UdpEchoServer
from netlat.forwarder import TcpForwarder, UdpForwarder
from netlat.latencyclient import PayloadMismatchError, TcpLatencyClient, UdpLatencyClient, print_sample
from netlat.statistics import latencyStatistics
from netlat.tester import DuplexTester
from netlat.utils import parse_addr

import click
import click_log
import signal
import time

from logging.handlers import TimedRotatingFileHandler


import logging
logger = logging.getLogger("netlat")
click_logger = click_log.basic_config(logger)


class EndpointParamType(click.ParamType):
    name = 'endpoint'

    def convert(self, value, param, ctx):
        try:
            return parse_addr(value)
        except ValueError as e:
            self.fail('%s is not a valid ip:port (%s)' % (value, e), param, ctx)

    def __repr__(self):
        return 'ENDPOINT'


ENDPOINT = EndpointParamType()


class AliasedGroup(click.Group):

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        matches = [x for x in self.list_commands(ctx)
                   if x.startswith(cmd_name)]
        if not matches:
            return None
        elif len(matches) == 1:
            return click.Group.get_command(self, ctx, matches[0])
        ctx.fail('Please be more specific \n%s' % '\n'.join(sorted(matches)))


local_option = click.option('-L', '--local', 'local_addr', metavar='local-ip:port', default=TCP_SERVER_ADDR_DEFAULT,
                             type=ENDPOINT, show_default=True, help='the local socket address to listen')
remote_argument = click.argument('remote_addr', metavar='remote-ip:port', type=ENDPOINT)


def max_data_size_option(default):
    return click.option('-m', '--max-data-size', metavar='bytes', default=default, show_default=True,
                        type=click.IntRange(1), help='maximum size of data allowed to receive')


def client_options(func):
    func = click.option('-s', '--summary', is_flag=True, help='print min/max/avg/jitter after the last round trip')(func)
    func = click.option('-r', '--repeat', metavar='count', default=REPEAT_DEFAULT, show_default=True,
                        type=click.IntRange(0), help='the number of repetitions')(func)
    func = click.option('-d', '--data-size', metavar='bytes', default=DATA_SIZE_DEFAULT, show_default=True,
                        type=click.IntRange(0), help='the data size to send')(func)
    return func


def make_report(summary):
    if not summary:
        return print_sample, None

    stats = latencyStatistics()

    def report(sample):
        print_sample(sample)
        stats.add(sample)
    return report, stats


def serve(session):
    session.start()

    signal.signal(signal.SIGINT, session.stop)
    signal.signal(signal.SIGTERM, session.stop)

    while session.is_alive():
        time.sleep(0.1)

    if session.error is not None:
        raise click.ClickException("%s failed: %s" % (session.name, session.error))


def measure(client, stats):
    try:
        client.run()
    except PayloadMismatchError as e:
        logger.critical("*** Payload mismatch: %s", e)
        raise click.ClickException(str(e))
    except OSError as e:
        logger.critical("*** Round trip failed: %s", e)
        raise click.ClickException(str(e))
    finally:
        if stats is not None:
            stats.dump()


def open_role(factory, *args, **kwargs):
    try:
        return factory(*args, **kwargs)
    except (OSError, ValueError) as e:
        logger.critical("*** Cannot start: %s", e)
        raise click.ClickException(str(e))


@click.group(cls=AliasedGroup)
@click_log.simple_verbosity_option(logger)
@click.option("-q", "--quiet", "quiet", is_flag=True)
@click.option("-l", "--logfile", "logfile", type=click.Path())
def cli(quiet, logfile):
    """Raw TCP/UDP round-trip latency toolkit: echo servers, forwarders,
       latency clients and a duplex tester."""

    loglevel = logger.level
    if quiet:
        logger.setLevel(logging.CRITICAL)

    if loglevel >= logging.DEBUG and logfile:
        file_handler = TimedRotatingFileHandler(
            filename=logfile, when='midnight', backupCount=31)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        file_handler.setLevel(loglevel)
        click_logger.addHandler(file_handler)


@cli.command('tcp-forwarder')
@remote_argument
@local_option
@max_data_size_option(TCP_MAX_DATA_SIZE_DEFAULT)
def tcp_forwarder(remote_addr, local_addr, max_data_size):
    """start a network latency test tcp forwarder"""
    serve(open_role(TcpForwarder, local_addr, remote_addr, max_data_size))


@cli.command('udp-forwarder')
@remote_argument
@local_option
@max_data_size_option(UDP_MAX_DATA_SIZE_DEFAULT)
def udp_forwarder(remote_addr, local_addr, max_data_size):
    """start a network latency test udp forwarder"""
    serve(open_role(UdpForwarder, local_addr, remote_addr, max_data_size))


@cli.command('tcp-tester')
@remote_argument
@local_option
@client_options
def tcp_tester(remote_addr, local_addr, data_size, repeat, summary):
    """start a network latency tcp tester"""
    report, stats = make_report(summary)
    measure(open_role(DuplexTester, local_addr, remote_addr, data_size, repeat, report=report), stats)


@cli.command('tcp-server')
@click.argument('socket_addr', metavar='ip:port', default=TCP_SERVER_ADDR_DEFAULT, type=ENDPOINT)
@max_data_size_option(TCP_MAX_DATA_SIZE_DEFAULT)
def tcp_server(socket_addr, max_data_size):
    """start a network latency test tcp server"""
    serve(open_role(TcpEchoServer, socket_addr, max_data_size))


@cli.command('udp-server')
@click.argument('socket_addr', metavar='ip:port', default=UDP_SERVER_ADDR_DEFAULT, type=ENDPOINT)
@max_data_size_option(UDP_MAX_DATA_SIZE_DEFAULT)
def udp_server(socket_addr, max_data_size):
    """start a network latency test udp server"""
    serve(open_role(UdpEchoServer, socket_addr, max_data_size))


@cli.command('tcp-client')
@click.argument('socket_addr', metavar='remote-ip:port', type=ENDPOINT)
@client_options
def tcp_client(socket_addr, data_size, repeat, summary):
    """start as a tcp worker"""
    report, stats = make_report(summary)
    measure(open_role(TcpLatencyClient, socket_addr, data_size, repeat, report=report), stats)


@cli.command('udp-client')
@click.argument('local_addr', metavar='local-ip:port', default=UDP_CLIENT_ADDR_DEFAULT, type=ENDPOINT)
@click.option('-c', '--connect', 'remote_addr', metavar='remote-ip:port', default=UDP_SERVER_ADDR_DEFAULT,
              type=ENDPOINT, show_default=True, help='the udp server to send to')
@client_options
def udp_client(local_addr, remote_addr, data_size, repeat, summary):
    """start as a udp worker"""
    report, stats = make_report(summary)
    measure(open_role(UdpLatencyClient, local_addr, remote_addr, data_size, repeat, report=report), stats)


if __name__ == "__main__":
    cli()
