"""
Plain records exchanged with the controller, and a minimal panel/device model.

The panel and device classes are the smallest shape the registration handles need:
a panel is a list of widgets, some of which are linked to sensors, some of which send
commands and some of which reference resources; a device owns sensors and named commands.
Applications with a richer view model can subclass these or supply objects with the same
attributes.
"""
from controllerconsole.codes import ResponseCode
from controllerconsole.support.events import EventSource
from controllerconsole.support.mixins import CommonEqualityMixin, StringerMixin


class Credentials(CommonEqualityMixin, StringerMixin):
    def __init__(self, username, password):
        self.username = username
        self.password = password

    def __str__(self):
        return "Credentials:{'username': '%s'}" % self.username


class ControllerInfo(CommonEqualityMixin, StringerMixin):
    """ Identifies a controller. Only the url is required. """
    def __init__(self, url, name=None, version=None, identity=None):
        self.url = url
        self.name = name
        self.version = version
        self.identity = identity


class ConnectionStatus(CommonEqualityMixin, StringerMixin):
    def __init__(self, code: ResponseCode):
        self.code = code


class PanelInfo(CommonEqualityMixin, StringerMixin):
    def __init__(self, id, name):
        self.id = id
        self.name = name


class DeviceInfo(CommonEqualityMixin, StringerMixin):
    def __init__(self, name, id=None):
        self.name = name
        self.id = id


class ControlCommand(CommonEqualityMixin, StringerMixin):
    """ A command addressed to a widget's sender id, carrying widget specific data such as 'ON' or '50'. """
    def __init__(self, sender_id, data):
        self.sender_id = sender_id
        self.data = data


class ControlCommandResponse(CommonEqualityMixin, StringerMixin):
    def __init__(self, sender_id, code: ResponseCode):
        self.sender_id = sender_id
        self.code = code


class CommandResponse(CommonEqualityMixin, StringerMixin):
    def __init__(self, code: ResponseCode):
        self.code = code


class ResourceInfoDetails(CommonEqualityMixin, StringerMixin):
    def __init__(self, content_type=None, modified_time=None):
        self.content_type = content_type
        self.modified_time = modified_time


class ResourceDataResponse(CommonEqualityMixin, StringerMixin):
    def __init__(self, resource_name, data: bytes, code: ResponseCode=ResponseCode.OK):
        self.resource_name = resource_name
        self.data = data
        self.code = code


class SensorValueChangedEvent(CommonEqualityMixin):
    """ Fired by widgets and sensors when a sensor value is pushed to them. """
    def __init__(self, source, sensor_id, value):
        self.source = source
        self.sensor_id = sensor_id
        self.value = value


class SensorLink(CommonEqualityMixin, StringerMixin):
    """ A reference from a widget to a sensor. """
    def __init__(self, ref, name=None):
        self.ref = ref
        self.name = name


class ResourceInfo:
    """
    A named resource (typically an image) referenced by a widget.
    Details and data can only be fetched while the owning panel is registered, when
    the controller has set the resource_locator.
    """
    def __init__(self, name):
        self.name = name
        self.resource_locator = None

    def get_details(self, callback):
        locator = self.resource_locator
        if locator is None:
            callback.on_failure(ResponseCode.DISCONNECTED)
            return None
        return locator.get_resource_details(self.name, callback)

    def get_data(self, callback):
        locator = self.resource_locator
        if locator is None:
            callback.on_failure(ResponseCode.DISCONNECTED)
            return None
        return locator.get_resource_data(self.name, callback)

    def __repr__(self):
        return "ResourceInfo(%r)" % self.name


class Widget:
    """
    A panel element. A widget with sensor links receives sensor values; a widget with an id
    can send control commands once the controller has set the command_sender.
    Value changes are published on `events` as SensorValueChangedEvent.
    """
    def __init__(self, id=None, name=None, sensor_links=(), resources=()):
        self.id = id
        self.name = name
        self.sensor_links = list(sensor_links)
        self.resources = list(resources)
        self.command_sender = None
        self.values = {}
        self.events = EventSource()

    @property
    def is_sensory(self):
        return bool(self.sensor_links)

    def on_sensor_value_changed(self, sensor_id, value):
        self.values[sensor_id] = value
        self.events.fire(SensorValueChangedEvent(self, sensor_id, value))

    def send_command(self, data, callback):
        sender = self.command_sender
        if sender is None:
            callback.on_failure(ResponseCode.DISCONNECTED)
            return None
        return sender.send_control_command(ControlCommand(self.id, data), callback)

    def __repr__(self):
        return "Widget(id=%r, name=%r)" % (self.id, self.name)


class Panel:
    def __init__(self, name, widgets=(), id=None):
        self.id = id
        self.name = name
        self.widgets = list(widgets)

    def sensory_widgets(self):
        return [w for w in self.widgets if w.is_sensory]

    def resource_consumers(self):
        return [w for w in self.widgets if w.resources]

    def __repr__(self):
        return "Panel(%r)" % self.name


class Sensor:
    def __init__(self, id, name=None, value=None):
        self.id = id
        self.name = name
        self._value = value
        self.events = EventSource()

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value
        self.events.fire(SensorValueChangedEvent(self, self.id, value))

    def __repr__(self):
        return "Sensor(id=%r, name=%r, value=%r)" % (self.id, self.name, self._value)


class Command(CommonEqualityMixin, StringerMixin):
    """ A named device command. `device` is the owning device name. """
    def __init__(self, name, device, id=None):
        self.id = id
        self.name = name
        self.device = device


class Device:
    def __init__(self, name, sensors=(), commands=(), id=None):
        self.id = id
        self.name = name
        self.sensors = list(sensors)
        self.commands = list(commands)
        self.command_sender = None

    def find_command(self, name):
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def send_command(self, name, parameter, callback):
        """ sends the named command, with an optional parameter. """
        sender = self.command_sender
        command = self.find_command(name) or Command(name, self.name)
        if sender is None:
            callback.on_failure(ResponseCode.DISCONNECTED)
            return None
        return sender.send_command(command, parameter, callback)

    def __repr__(self):
        return "Device(%r)" % self.name
