import logging
import threading

from controllerconsole.callbacks import notify_failure, notify_success
from controllerconsole.codes import ResponseCode
from controllerconsole.connector.base import ConnectionConnectedError, ConnectionState, ConnectorConnectedEvent, \
    ConnectorDisconnectedEvent
from controllerconsole.connector.dispatcher import CommandDispatcher
from controllerconsole.model import ControllerInfo
from controllerconsole.support.events import EventSource

logger = logging.getLogger(__name__)


class Connector:
    """
    The session with one controller: a command dispatcher plus the connection state.

    Connection changes are published on `events` as ConnectorConnectedEvent and ConnectorDisconnectedEvent.
    The callback given to the last successful connect is kept so that the connection can be re-established
    with it, and is told when the connection is lost.
    """

    def __init__(self, dispatcher: CommandDispatcher, log=logger):
        self.dispatcher = dispatcher
        self.logger = log
        self.events = EventSource()
        self.controller_info = None
        self.credentials = None
        self.connect_callback = None
        self._state = ConnectionState.DISCONNECTED
        self._generation = 0        # incremented on each disconnect
        self._lock = threading.Lock()

    @property
    def state(self):
        return self._state

    @property
    def connected(self):
        return self._state is ConnectionState.CONNECTED

    @property
    def controller_url(self):
        return self.dispatcher.base_url

    @controller_url.setter
    def controller_url(self, url):
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                raise ConnectionConnectedError("the controller url cannot be changed while %s" % self._state.value)
            self.dispatcher.base_url = url
            self.controller_info = ControllerInfo(url) if url else None

    def connect(self, callback=None, timeout=None):
        """
        Connects to the controller, notifying the callback with the outcome.
        :return: False if the connector was already connected or connecting, and nothing was done.
        """
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                return False
            self._state = ConnectionState.CONNECTING
            generation = self._generation
        self.logger.info("connecting to %s", self.controller_url)
        self.dispatcher.transport.set_credentials(self.credentials)
        result = self.dispatcher.connect(timeout)
        with self._lock:
            interrupted = generation != self._generation
            if not interrupted:
                if result.succeeded:
                    self._state = ConnectionState.CONNECTED
                    self.connect_callback = callback
                else:
                    self._state = ConnectionState.DISCONNECTED
        if interrupted:
            self.logger.info("disconnected while connecting to %s", self.controller_url)
            notify_failure(callback, ResponseCode.DISCONNECTED)
        elif result.succeeded:
            self.logger.info("connected to %s", self.controller_url)
            self.events.fire(ConnectorConnectedEvent(self))
            notify_success(callback, result.value)
        else:
            self.logger.info("connecting to %s failed: %s", self.controller_url, result.code.name)
            notify_failure(callback, result.code)
        return True

    def disconnect(self, code=None):
        """
        Disconnects from the controller.
        :param code: the failure that caused the disconnect, None when the disconnect was requested.
        :return: False if already disconnected.
        """
        with self._lock:
            if self._state is ConnectionState.DISCONNECTED:
                return False
            was_connected = self._state is ConnectionState.CONNECTED
            self._state = ConnectionState.DISCONNECTED
            self._generation += 1
            callback = self.connect_callback
        if not was_connected:
            return True
        self.logger.info("disconnected from %s%s", self.controller_url, ": %s" % code.name if code else '')
        try:
            self.dispatcher.transport.close()
        except Exception as e:
            self.logger.warning("error closing transport: %s", e)
        self.events.fire(ConnectorDisconnectedEvent(self, code))
        notify_failure(callback, ResponseCode.DISCONNECTED)
        return True
