"""
Finds controllers on the local network.

A discovery run multicasts a probe datagram at a doubling interval. Controllers that receive it open a
TCP connection back to the collector's port and send their url, or a JSON description of themselves,
then close the connection. Each distinct response is reported once per run.
"""
import logging
import socket
import threading
import time
from enum import Enum

from controllerconsole.callbacks import DiscoveryListener
from controllerconsole.codecs import DecodeError, decode_controller_info
from controllerconsole.codes import ResponseCode
from controllerconsole.settings import ConsoleSettings
from controllerconsole.support.asyncloop import AsyncLoop
from controllerconsole.support.retry_strategy import DoublingRetryStrategy

logger = logging.getLogger(__name__)

PROBE_SIZE = 512


class ResponseKey(Enum):
    """ what makes two responses the same controller """
    BODY = 'body'
    ADDRESS = 'address'


class Broadcaster:
    """ Sends the discovery probe to the multicast group. Send errors are logged and ignored. """

    def __init__(self, address, port, socket_factory=socket.socket, log=logger):
        self.address = address
        self.port = port
        self.socket_factory = socket_factory
        self.logger = log
        self.sock = None

    def open(self):
        sock = self.socket_factory(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        self.sock = sock

    def send(self):
        try:
            if self.sock is None:
                self.open()
            self.sock.sendto(bytes(PROBE_SIZE), (self.address, self.port))
            self.logger.debug("sent discovery probe to %s:%s", self.address, self.port)
            return True
        except OSError as e:
            self.logger.warning("unable to send discovery probe to %s:%s: %s", self.address, self.port, e)
            return False

    def close(self):
        sock, self.sock = self.sock, None
        if sock is not None:
            sock.close()


def read_response(conn):
    """ reads the lines sent on a connection until the peer closes it, and concatenates them. """
    with conn.makefile('r', encoding='utf-8', errors='replace', newline=None) as stream:
        return ''.join(line.rstrip('\r\n') for line in stream)


class ResponseCollector(AsyncLoop):
    """
    Accepts the connections made by controllers answering a probe. Each connection is read on a
    thread of its own and the response handed to `on_response(body, address)`.
    """

    def __init__(self, port, on_response, socket_factory=socket.socket, backlog=5, log=logger):
        super().__init__(name='discovery-collector', log=log)
        self.port = port
        self.on_response = on_response
        self.socket_factory = socket_factory
        self.backlog = backlog
        self.sock = None

    def bind(self):
        """ binds the listening socket. Raises OSError when the port is not available. """
        sock = self.socket_factory(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(('', self.port))
            sock.listen(self.backlog)
        except OSError:
            sock.close()
            raise
        self.sock = sock
        self.port = sock.getsockname()[1]

    def loop(self):
        try:
            conn, address = self.sock.accept()
        except OSError as e:
            if self.running():
                self.logger.warning("discovery collector stopped accepting: %s", e)
                self.stop_event.set()
            return
        threading.Thread(target=self._handle, args=(conn, address), name='discovery-response',
                         daemon=True).start()

    def _handle(self, conn, address):
        try:
            with conn:
                body = read_response(conn)
        except OSError as e:
            self.logger.warning("error reading discovery response from %s: %s", address, e)
            return
        self.on_response(body, address)

    def cancel(self):
        """ stops accepting. Closing the socket interrupts a blocked accept. """
        self.stop_event.set()
        self.close()

    def stop(self, timeout=None):
        self.cancel()
        super().stop(timeout)

    def close(self):
        sock, self.sock = self.sock, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass    # not connected
            sock.close()


class DiscoveryRun(AsyncLoop):
    """
    One discovery session. The collector is bound on startup; the loop then sends probes at a doubling
    interval until the run is stopped or the duration expires.
    """

    def __init__(self, service, listener: DiscoveryListener, tcp_port, duration=None, key=ResponseKey.BODY,
                 log=logger):
        super().__init__(name='discovery', log=log)
        self.service = service
        self.listener = listener
        self.duration = duration
        self.key = key
        settings = service.settings
        self.interval = DoublingRetryStrategy(settings.broadcast_interval, settings.broadcast_max_interval)
        self.broadcaster = Broadcaster(settings.multicast_address, settings.multicast_port,
                                       service.socket_factory, log)
        self.collector = ResponseCollector(tcp_port, self.on_response, service.socket_factory, log=log)
        self.started_at = None
        self.failed = False
        self._reported = set()
        self._lock = threading.Lock()

    def startup(self):
        try:
            self.collector.bind()
        except OSError as e:
            self.logger.error("unable to listen for discovery responses on port %s: %s", self.collector.port, e)
            self.failed = True
            self.stop_event.set()
            self._call_listener('on_start_discovery_failed', ResponseCode.UNKNOWN_ERROR)
            return
        self.collector.start()
        self.started_at = time.monotonic()
        self.logger.info("discovery started, collecting on port %s", self.collector.port)
        self._call_listener('on_discovery_started')

    def remaining(self):
        if self.duration is None:
            return None
        return self.duration - (time.monotonic() - self.started_at)

    def loop(self):
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            self.stop_event.set()
            return
        self.broadcaster.send()
        wait = self.interval()
        if remaining is not None:
            wait = min(wait, remaining)
        self.stop_event.wait(wait)

    def shutdown(self):
        self.broadcaster.close()
        if not self.failed:
            self.collector.stop()
            self.logger.info("discovery stopped")
            self._call_listener('on_discovery_stopped')
        self.service.run_finished(self)

    def stop(self, timeout=None):
        self.stop_event.set()
        self.collector.cancel()
        super().stop(timeout)

    def record(self, key):
        """ notes a response key. Returns False when the key was seen before in this run. """
        with self._lock:
            if key in self._reported:
                return False
            self._reported.add(key)
            return True

    def on_response(self, body, address):
        if not self.running():
            return
        key = body if self.key is ResponseKey.BODY else address[0]
        if not self.record(key):
            return
        try:
            info = decode_controller_info(body)
        except DecodeError as e:
            self.logger.warning("ignoring discovery response from %s: %s", address, e)
            return
        if self.running():
            self.logger.info("found controller %s", info.url)
            self._call_listener('on_controller_found', info)

    def _call_listener(self, method, *args):
        try:
            getattr(self.listener, method)(*args)
        except Exception as e:
            self.logger.exception("discovery listener raised %s from %s", e, method)


class DiscoveryService:
    """
    Runs one discovery at a time.
    :param settings: the multicast address, port and broadcast intervals
    :param socket_factory: creates the sockets, socket.socket by default
    """

    def __init__(self, settings: ConsoleSettings=None, socket_factory=socket.socket, log=logger):
        self.settings = settings or ConsoleSettings()
        self.socket_factory = socket_factory
        self.logger = log
        self.run = None
        self._lock = threading.Lock()

    @property
    def is_running(self):
        return self.run is not None

    def start(self, listener, tcp_port=None, duration=None, key=ResponseKey.BODY):
        """
        Starts discovery, reporting to the listener.
        :param tcp_port: the port responses are collected on
        :param duration: stop after this many seconds, None to run until stopped
        :return: False when a discovery is already running
        """
        with self._lock:
            if self.run is not None:
                return False
            port = self.settings.discovery_tcp_port if tcp_port is None else tcp_port
            run = DiscoveryRun(self, listener, port, duration, key, self.logger)
            self.run = run
        run.start()
        return True

    def stop(self, timeout=None):
        """ stops the running discovery, if any, and waits for it to finish. """
        with self._lock:
            run = self.run
        if run is None:
            return False
        run.stop(timeout)
        return True

    def run_finished(self, run):
        with self._lock:
            if self.run is run:
                self.run = None
