"""
Decoders for the JSON bodies returned by the controller.

Each decoder takes the response text and returns a record from controllerconsole.model, or raises
DecodeError. The controller serializes a single element list as a bare object, so list
decoders accept either form.
"""
import json
import logging

from controllerconsole.codes import ResponseCode
from controllerconsole.connector.base import ConnectorError
from controllerconsole.model import ControllerInfo, Device, DeviceInfo, Panel, PanelInfo, ResourceInfo, Sensor, \
    SensorLink, Widget, Command
from controllerconsole.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)


class DecodeError(ConnectorError):
    """ The response body could not be decoded into the expected record. """


class ControllerError(CommonEqualityMixin, StringerMixin):
    """ A structured error returned by the controller in place of the expected body. """
    def __init__(self, code: ResponseCode, description=None):
        self.code = code
        self.description = description


def load_json(text):
    if text is None:
        raise DecodeError("empty response")
    if isinstance(text, bytes):
        text = text.decode('utf-8')
    try:
        return json.loads(text)
    except ValueError as e:
        raise DecodeError("invalid json: %s" % e) from e


def as_list(value):
    """
    >>> as_list(None)
    []
    >>> as_list({'a': 1})
    [{'a': 1}]
    >>> as_list([1, 2])
    [1, 2]
    """
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _object(doc, what):
    if not isinstance(doc, dict):
        raise DecodeError("expected an object for %s" % what)
    return doc


def _sensor_id(value):
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError("invalid sensor id %r" % (value,)) from e


def decode_controller_error(text) -> ControllerError:
    """
    Decodes a structured error body. Both the {"response": ...} form and the
    controller's native {"error": {"code": ...}} form are understood.
    A recognisable error object with an unknown code decodes as UNKNOWN_ERROR.
    """
    doc = _object(load_json(text), 'error')
    if 'response' in doc:
        value = doc['response']
        description = doc.get('description')
        if isinstance(value, dict):
            description = value.get('description', description)
            value = value.get('code', value.get('name'))
    elif isinstance(doc.get('error'), dict):
        error = doc['error']
        value = error.get('code')
        description = error.get('message') or error.get('description')
    else:
        raise DecodeError("not an error body")
    code = ResponseCode.parse(value)
    if code is None:
        logger.debug("unrecognised controller error code %r", value)
        code = ResponseCode.UNKNOWN_ERROR
    return ControllerError(code, description)


def decode_sensor_values(text) -> dict:
    """
    Decodes a sensor status list into a mapping from sensor id to value.
    >>> decode_sensor_values('{"status": [{"id": "1", "value": "on"}, {"id": 2, "value": "50"}]}')
    {1: 'on', 2: '50'}
    """
    doc = _object(load_json(text), 'sensor status')
    if 'status' not in doc:
        raise DecodeError("missing status list")
    values = {}
    for status in as_list(doc['status']):
        status = _object(status, 'sensor status')
        values[_sensor_id(status.get('id'))] = status.get('value')
    return values


def decode_panel_list(text) -> list:
    doc = _object(load_json(text), 'panel list')
    return [PanelInfo(p.get('id'), p.get('name')) for p in (_object(p, 'panel') for p in as_list(doc.get('panel')))]


def decode_widget(doc) -> Widget:
    doc = _object(doc, 'widget')
    links = [SensorLink(_sensor_id(link.get('ref')), link.get('name'))
             for link in (_object(link, 'sensor link') for link in as_list(doc.get('sensorLinks')))]
    resources = [ResourceInfo(name) for name in as_list(doc.get('resources'))]
    return Widget(doc.get('id'), doc.get('name'), links, resources)


def decode_panel(text) -> Panel:
    doc = _object(load_json(text), 'panel')
    if 'name' not in doc:
        raise DecodeError("panel has no name")
    return Panel(doc['name'], [decode_widget(w) for w in as_list(doc.get('widgets'))], doc.get('id'))


def decode_device_list(text) -> list:
    doc = load_json(text)
    if isinstance(doc, dict):
        doc = doc.get('devices', doc)
    return [DeviceInfo(d.get('name'), d.get('id')) for d in (_object(d, 'device') for d in as_list(doc))]


def decode_device(text) -> Device:
    doc = _object(load_json(text), 'device')
    if 'name' not in doc:
        raise DecodeError("device has no name")
    name = doc['name']
    sensors = [Sensor(_sensor_id(s.get('id')), s.get('name'), s.get('value'))
               for s in (_object(s, 'sensor') for s in as_list(doc.get('sensors')))]
    commands = [Command(c.get('name'), name, c.get('id'))
                for c in (_object(c, 'command') for c in as_list(doc.get('commands')))]
    return Device(name, sensors, commands, doc.get('id'))


def decode_controller_info(text) -> ControllerInfo:
    """
    Decodes a discovery announcement. Newer controllers send a JSON object, older ones
    just their url.
    >>> decode_controller_info('http://192.168.1.5:8080/controller')
    ControllerInfo:{'identity': None, 'name': None, 'url': 'http://192.168.1.5:8080/controller', 'version': None}
    """
    if isinstance(text, bytes):
        text = text.decode('utf-8')
    text = text.strip()
    if not text:
        raise DecodeError("empty announcement")
    if not text.startswith('{'):
        return ControllerInfo(text)
    doc = _object(load_json(text), 'controller info')
    if not doc.get('url'):
        raise DecodeError("controller info has no url")
    return ControllerInfo(doc['url'], doc.get('name'), doc.get('version'), doc.get('identity'))
