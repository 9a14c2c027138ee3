"""
Registration handles keep a panel or device in step with the controller's sensor values.

A handle derives the set of sensor ids its subscriber is interested in, applies an initial snapshot of
their values, and then long-polls the controller for changes on a dedicated thread. At most one poll is
outstanding per handle; the next poll is only issued once the previous result has been applied, and only
while the handle is active and the controller connected.

Disconnecting deactivates a handle, which stops its poll loop. The handle is started again when the
controller reconnects. Unregistering ends the handle for good.
"""
import logging
import threading
import uuid
from abc import abstractmethod

from controllerconsole.callbacks import notify_failure, notify_success
from controllerconsole.codes import ResponseCode

logger = logging.getLogger(__name__)


class GuardedCallback:
    """ Forwards results to a callback while the guard is enabled, and drops them afterwards. """

    def __init__(self, callback, guard):
        self.callback = callback
        self.guard = guard

    def on_success(self, *args):
        if self.guard.enabled:
            notify_success(self.callback, *args)
        else:
            logger.debug("dropped late result for %r", self.callback)

    def on_failure(self, code):
        if self.guard.enabled:
            notify_failure(self.callback, code)
        else:
            logger.debug("dropped late failure %s for %r", code.name, self.callback)


class ControllerCommandSender:
    """ Lets the widgets of a registered panel, or a registered device, send commands. """

    def __init__(self, controller):
        self.controller = controller
        self.enabled = True

    def send_control_command(self, command, callback):
        return self.controller.send_control_command(command, GuardedCallback(callback, self))

    def send_command(self, command, parameter, callback):
        return self.controller.send_command(command, parameter, GuardedCallback(callback, self))


class ControllerResourceLocator:
    """ Lets the resources of a registered panel fetch their details and data. """

    def __init__(self, controller):
        self.controller = controller
        self.enabled = True

    def get_resource_details(self, name, callback):
        return self.controller.get_resource_details(name, GuardedCallback(callback, self))

    def get_resource_data(self, name, callback):
        return self.controller.get_resource_data(name, GuardedCallback(callback, self))


class SensorMonitor:
    """
    The poll loop of a handle. start() while a previous loop is still waiting on a poll does not
    start a second loop: the waiting loop carries on once its poll returns.
    """

    def __init__(self, handle, log=logger):
        self.handle = handle
        self.logger = log
        self.running = False
        self.thread = None

    def start(self):
        with self.handle.lock:
            if self.running:
                return False
            self.running = True
        self.thread = threading.Thread(target=self._run, name='sensor-monitor-' + self.handle.token[:8],
                                       daemon=True)
        self.thread.start()
        return True

    def _proceed(self):
        handle = self.handle
        with handle.lock:
            if handle.active and handle.controller.connected:
                return True
            self.running = False
            return False

    def _stopped(self):
        with self.handle.lock:
            self.running = False

    def _run(self):
        handle = self.handle
        try:
            while self._proceed():
                result = handle.poll()
                if not result.succeeded:
                    self._stopped()
                    handle.poll_failed(result.code)
                    return
                handle.deliver(result.value)
        except Exception as e:
            self._stopped()
            self.logger.exception("sensor monitor for %r stopped: %s", handle.subscriber, e)
        self.logger.debug("sensor monitor for %r exiting", handle.subscriber)


class RegistrationHandle:
    """
    A subscriber's interest in a set of sensors.
    :param controller: the controller the subscriber is registered with
    :param subscriber: the panel or device
    :param callback: a RegistrationCallback, may be None
    """

    def __init__(self, controller, subscriber, callback=None, log=logger):
        self.controller = controller
        self.subscriber = subscriber
        self.callback = callback
        self.logger = log
        self.token = uuid.uuid4().hex
        self.lock = threading.Lock()
        self.active = False
        self.registered = True
        self.notified = False
        self.command_sender = ControllerCommandSender(controller)
        self.resource_locator = ControllerResourceLocator(controller)
        self.monitor = SensorMonitor(self, log)
        self._sensor_ids = None

    @property
    def sensor_ids(self):
        """ the sorted ids of the sensors the subscriber is interested in. Computed once. """
        if self._sensor_ids is None:
            self._sensor_ids = sorted(set(self.compute_sensor_ids()))
        return self._sensor_ids

    @abstractmethod
    def compute_sensor_ids(self):
        raise NotImplementedError

    @abstractmethod
    def apply_delta(self, delta):
        """ pushes changed sensor values to the subscriber. """
        raise NotImplementedError

    @abstractmethod
    def wire(self):
        """ gives the subscriber access to the command sender and resource locator. """
        raise NotImplementedError

    @abstractmethod
    def unwire(self):
        raise NotImplementedError

    def start(self):
        """
        Activates the handle: applies a snapshot of the sensor values, notifies the registration
        callback the first time, and starts monitoring. Called on each successful connect.
        """
        with self.lock:
            if not self.registered:
                return False
            self.active = True
        ids = self.sensor_ids
        if ids:
            result = self.controller.dispatcher.get_sensor_values(ids)
            if not result.succeeded:
                self.logger.warning("sensor snapshot for %r failed: %s", self.subscriber, result.code.name)
                notify_failure(self.callback, result.code)
                return False
            self.deliver(result.value)
        with self.lock:
            first = self.registered and not self.notified
            self.notified = True
        if first:
            notify_success(self.callback)
        with self.lock:
            if not self.active:
                return False
            self.wire()
        if ids:
            self.monitor.start()
        return True

    def deactivate(self):
        with self.lock:
            self.active = False

    def unregister(self):
        with self.lock:
            if not self.registered:
                return False
            self.registered = False
            self.active = False
            self.command_sender.enabled = False
            self.resource_locator.enabled = False
            self.unwire()
        notify_failure(self.callback, ResponseCode.UNREGISTERED)
        return True

    def poll(self):
        return self.controller.dispatcher.poll_sensors(self.token, self.sensor_ids, self.controller.poll_timeout)

    def poll_failed(self, code):
        with self.lock:
            report = self.active
        self.logger.warning("monitoring %r failed: %s", self.subscriber, code.name)
        if report:
            notify_failure(self.callback, code)

    def deliver(self, delta):
        if not delta:
            return
        with self.lock:
            if not self.active:
                return
        self.apply_delta(delta)


class PanelRegistrationHandle(RegistrationHandle):
    """ Keeps the sensory widgets of a panel up to date. """

    def compute_sensor_ids(self):
        return [link.ref for widget in self.subscriber.sensory_widgets() for link in widget.sensor_links]

    def apply_delta(self, delta):
        for widget in self.subscriber.sensory_widgets():
            for link in widget.sensor_links:
                if link.ref in delta:
                    widget.on_sensor_value_changed(link.ref, delta[link.ref])

    def wire(self):
        for widget in self.subscriber.widgets:
            widget.command_sender = self.command_sender
            for resource in widget.resources:
                resource.resource_locator = self.resource_locator

    def unwire(self):
        for widget in self.subscriber.widgets:
            widget.command_sender = None
            for resource in widget.resources:
                resource.resource_locator = None


class DeviceRegistrationHandle(RegistrationHandle):
    """ Keeps the sensors of a device up to date. """

    def compute_sensor_ids(self):
        return [sensor.id for sensor in self.subscriber.sensors]

    def apply_delta(self, delta):
        for sensor in self.subscriber.sensors:
            if sensor.id in delta:
                sensor.value = delta[sensor.id]

    def wire(self):
        self.subscriber.command_sender = self.command_sender

    def unwire(self):
        self.subscriber.command_sender = None
