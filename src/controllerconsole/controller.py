"""
The application's entry point to a controller.

The Controller owns the connector and the registrations. Operations run on an executor and deliver their
outcome to the given callback; each also returns a Future for the dispatcher Result. When the connector
connects, every registered panel and device is (re)started, and when it disconnects they are deactivated.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from controllerconsole.callbacks import notify, notify_failure
from controllerconsole.codes import ResponseCode
from controllerconsole.connector.base import ConnectorConnectedEvent, ConnectorDisconnectedEvent
from controllerconsole.connector.dispatcher import CommandDispatcher, Failure
from controllerconsole.connector.session import Connector
from controllerconsole.connector.transport import RequestsTransport, Transport
from controllerconsole.discovery import DiscoveryService
from controllerconsole.registration import DeviceRegistrationHandle, PanelRegistrationHandle
from controllerconsole.settings import ConsoleSettings

logger = logging.getLogger(__name__)


class Controller:
    """
    :param controller_url: the base url of the controller, e.g. http://192.168.1.5:8080/controller
    :param transport: performs the requests, a RequestsTransport by default
    :param discovery_service: used by the discovery operations
    :param executor: runs the operations, a thread pool by default
    :param settings: timeouts and discovery settings
    """

    def __init__(self, controller_url=None, transport: Transport=None, discovery_service: DiscoveryService=None,
                 executor=None, settings: ConsoleSettings=None, log=logger):
        self.settings = settings or ConsoleSettings()
        self.logger = log
        self.discovery_service = discovery_service or DiscoveryService(self.settings)
        self.dispatcher = CommandDispatcher(transport or RequestsTransport(), self.discovery_service,
                                            self.settings.timeout, self.settings.poll_timeout)
        self.connector = Connector(self.dispatcher, log)
        self.connector.events += self._connector_event
        self.executor = executor or ThreadPoolExecutor(max_workers=8, thread_name_prefix='controller')
        self._registrations = {}
        self._lock = threading.RLock()
        if controller_url:
            self.connector.controller_url = controller_url

    @property
    def connected(self):
        return self.connector.connected

    @property
    def poll_timeout(self):
        return self.settings.poll_timeout

    @property
    def controller_info(self):
        return self.connector.controller_info

    @property
    def credentials(self):
        return self.connector.credentials

    @credentials.setter
    def credentials(self, credentials):
        self.connector.credentials = credentials

    @property
    def controller_url(self):
        return self.connector.controller_url

    @controller_url.setter
    def controller_url(self, url):
        """
        Changes the controller. When connected, the connection is closed and, if it was made with a
        callback, re-established with that callback against the new url. A disconnected controller
        stays disconnected.
        """
        if url == self.connector.controller_url:
            return
        was_connected = self.connected
        self.disconnect()
        self.connector.controller_url = url
        callback = self.connector.connect_callback
        if was_connected and callback is not None:
            self.connect(callback)

    def connect(self, callback=None, timeout=None):
        """
        Connects to the controller. Registered panels and devices are started once connected.
        :param callback: a ControllerCallback receiving ConnectionStatus or the failure code
        """
        return self.executor.submit(self._guarded, self.connector.connect, callback,
                                    self.settings.timeout if timeout is None else timeout)

    def disconnect(self):
        """ deactivates all registrations and disconnects. """
        for handle in self.registrations():
            handle.deactivate()
        return self.connector.disconnect()

    def _guarded(self, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            self.logger.exception("%s failed: %s", getattr(fn, '__name__', fn), e)
            raise

    def _connector_event(self, event):
        if isinstance(event, ConnectorConnectedEvent):
            for handle in self.registrations():
                self.executor.submit(self._guarded, handle.start)
        elif isinstance(event, ConnectorDisconnectedEvent):
            for handle in self.registrations():
                handle.deactivate()

    def registrations(self):
        with self._lock:
            return list(self._registrations.values())

    def registration(self, subscriber):
        with self._lock:
            return self._registrations.get(id(subscriber))

    def _register(self, subscriber, handle_class, callback):
        if subscriber is None:
            notify_failure(callback, ResponseCode.NULL_TARGET)
            return None
        with self._lock:
            handle = self._registrations.get(id(subscriber))
            existing = handle is not None
            if not existing:
                handle = handle_class(self, subscriber, callback, self.logger)
                self._registrations[id(subscriber)] = handle
            start = not existing and self.connected
        if existing:
            notify_failure(callback, ResponseCode.ALREADY_REGISTERED)
            return handle
        self.logger.debug("registered %r", subscriber)
        if start:
            self.executor.submit(self._guarded, handle.start)
        return handle

    def register_panel(self, panel, callback=None):
        """
        Keeps the panel's widgets updated with the values of the sensors they link to, and lets them
        send commands and fetch resources. When disconnected, the panel is started on the next connect.
        :param callback: a RegistrationCallback
        :return: the registration handle
        """
        return self._register(panel, PanelRegistrationHandle, callback)

    def register_device(self, device, callback=None):
        """ as register_panel, for the sensors and commands of a device. """
        return self._register(device, DeviceRegistrationHandle, callback)

    def unregister(self, subscriber):
        with self._lock:
            handle = self._registrations.pop(id(subscriber), None)
        if handle is None:
            return False
        self.logger.debug("unregistered %r", subscriber)
        return handle.unregister()

    unregister_panel = unregister
    unregister_device = unregister

    def _submit(self, callback, operation, *args):
        """ runs a dispatcher operation on the executor, failing with DISCONNECTED when not connected. """
        def run():
            result = operation(*args) if self.connected else Failure(ResponseCode.DISCONNECTED)
            notify(callback, result)
            return result
        return self.executor.submit(self._guarded, run)

    def list_panels(self, callback):
        return self._submit(callback, self.dispatcher.list_panels)

    def get_panel(self, name, callback):
        return self._submit(callback, self.dispatcher.get_panel, name)

    def list_devices(self, callback):
        return self._submit(callback, self.dispatcher.list_devices)

    def get_device(self, name, callback):
        return self._submit(callback, self.dispatcher.get_device, name)

    def send_control_command(self, command, callback=None):
        return self._submit(callback, self.dispatcher.send_control_command, command)

    def send_command(self, command, parameter=None, callback=None):
        return self._submit(callback, self.dispatcher.send_named_command, command, parameter)

    def get_sensor_values(self, ids, callback):
        return self._submit(callback, self.dispatcher.get_sensor_values, ids)

    def get_resource_details(self, name, callback):
        return self._submit(callback, self.dispatcher.get_resource_details, name)

    def get_resource_data(self, name, callback):
        return self._submit(callback, self.dispatcher.get_resource_data, name)

    def logout(self, callback=None):
        return self._submit(callback, self.dispatcher.logout)

    def start_discovery(self, listener, tcp_port=None, duration=None):
        return self.dispatcher.discovery_start(listener, tcp_port, duration)

    def stop_discovery(self):
        return self.dispatcher.discovery_stop()

    @property
    def discovery_running(self):
        return self.dispatcher.discovery_running

    def close(self):
        """ stops discovery, disconnects and shuts the executor down. """
        if self.discovery_running:
            self.stop_discovery()
        self.disconnect()
        self.executor.shutdown(wait=False)
