"""
Translates the controller operations into REST requests, and the responses back into results.

Every operation returns a Result: either Success carrying the decoded value, or Failure carrying a
ResponseCode. Transport and decode errors never escape the dispatcher. The dispatcher is stateless
apart from the base url and never retries a request.
"""
import json
import logging
from email.utils import parsedate_to_datetime
from enum import Enum
from urllib.parse import quote, urlencode, urlsplit

from controllerconsole.codecs import DecodeError, decode_controller_error, decode_device, decode_device_list, \
    decode_panel, decode_panel_list, decode_sensor_values
from controllerconsole.codes import ResponseCode
from controllerconsole.connector.base import ConnectorError
from controllerconsole.connector.transport import Transport, TransportError, TransportTimeoutError
from controllerconsole.model import CommandResponse, ConnectionStatus, ControlCommandResponse, \
    ResourceDataResponse, ResourceInfoDetails
from controllerconsole.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5
DEFAULT_POLL_TIMEOUT = 55


class RestCommand(Enum):
    CONNECT = ('rest/servers', 'GET')
    LIST_PANELS = ('rest/panels/', 'GET')
    GET_PANEL = ('rest/panel/{}', 'GET')
    LIST_DEVICES = ('rest/devices/', 'GET')
    GET_DEVICE = ('rest/devices/{}', 'GET')
    SEND_CONTROL_COMMAND = ('rest/control/{}/{}', 'POST')
    SEND_NAMED_COMMAND = ('rest/devices/{}/commands', 'POST')
    GET_SENSOR_VALUES = ('rest/status/{}', 'GET')
    POLL_SENSORS = ('rest/polling/{}/{}', 'GET')
    GET_RESOURCE_DETAILS = ('{}', 'HEAD')
    GET_RESOURCE_DATA = ('{}', 'GET')
    LOGOUT = ('', 'GET')

    def __init__(self, path, method):
        self.path = path
        self.method = method


class Result(CommonEqualityMixin, StringerMixin):
    succeeded = False


class Success(Result):
    succeeded = True

    def __init__(self, value):
        self.value = value


class Failure(Result):
    def __init__(self, code: ResponseCode):
        self.code = code


def join_ids(ids):
    """
    >>> join_ids([3, 1, 2])
    '3,1,2'
    """
    return ','.join(str(i) for i in ids)


def segment(value):
    return quote(str(value), safe='')


def valid_url(url):
    """
    >>> valid_url('http://10.0.0.2:8080/controller')
    True
    >>> valid_url('controller')
    False
    """
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ('http', 'https') and bool(parts.hostname)


def parse_http_date(value):
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        logger.debug("unparseable date %r", value)
        return None


def _decode_resource_details(response, *args):
    return ResourceInfoDetails(response.headers.get('Content-Type'),
                               parse_http_date(response.headers.get('Last-Modified')))


def _decode_resource_data(response, name):
    return ResourceDataResponse(name, response.body)


# how the body of a successful response to each command becomes a value
decoders = {
    RestCommand.CONNECT: lambda response: ConnectionStatus(ResponseCode.OK),
    RestCommand.LIST_PANELS: lambda response: decode_panel_list(response.body),
    RestCommand.GET_PANEL: lambda response, name: decode_panel(response.body),
    RestCommand.LIST_DEVICES: lambda response: decode_device_list(response.body),
    RestCommand.GET_DEVICE: lambda response, name: decode_device(response.body),
    RestCommand.SEND_CONTROL_COMMAND: lambda response, sender_id, data:
        ControlCommandResponse(sender_id, ResponseCode.OK),
    RestCommand.SEND_NAMED_COMMAND: lambda response, device: CommandResponse(ResponseCode.NO_CONTENT),
    RestCommand.GET_SENSOR_VALUES: lambda response, ids: decode_sensor_values(response.body),
    RestCommand.POLL_SENSORS: lambda response, token, ids: decode_sensor_values(response.body),
    RestCommand.GET_RESOURCE_DETAILS: _decode_resource_details,
    RestCommand.GET_RESOURCE_DATA: _decode_resource_data,
    RestCommand.LOGOUT: lambda response: True,
}


class CommandDispatcher:
    """
    Issues commands against the controller at `base_url`.
    :param transport: performs the requests
    :param discovery_service: the service that discovery operations delegate to
    :param timeout: the default request timeout in seconds
    :param poll_timeout: the timeout for long-poll requests in seconds
    """

    def __init__(self, transport: Transport, discovery_service=None, timeout=DEFAULT_TIMEOUT,
                 poll_timeout=DEFAULT_POLL_TIMEOUT):
        self.transport = transport
        self.discovery_service = discovery_service
        self.timeout = timeout
        self.poll_timeout = poll_timeout
        self.base_url = None

    def url(self, path):
        base = self.base_url
        if not path:
            return base
        return (base if base.endswith('/') else base + '/') + path

    def _send(self, command: RestCommand, path_args=(), quoted=(), query=None, body=None, headers=None,
              timeout=None):
        """ performs the request for a command. Raises TransportError. """
        path = command.path.format(*(quoted or [segment(a) for a in path_args]))
        url = self.url(path)
        if query:
            url += '?' + urlencode(query)
        return self.transport.request(command.method, url, headers=headers, body=body,
                                      timeout=self.timeout if timeout is None else timeout)

    def _execute(self, command: RestCommand, path_args=(), success=(200,), **kwargs) -> Result:
        if not valid_url(self.base_url):
            return Failure(ResponseCode.INVALID_URL)
        try:
            response = self._send(command, path_args, **kwargs)
        except TransportTimeoutError as e:
            logger.debug("%s timed out: %s", command.name, e)
            return Failure(ResponseCode.NO_RESPONSE)
        except TransportError as e:
            logger.warning("%s failed: %s", command.name, e)
            return Failure(ResponseCode.UNKNOWN_ERROR)
        if response.status not in success:
            return Failure(self.error_code(response))
        return self._decode(command, response, path_args)

    def _decode(self, command, response, path_args):
        try:
            return Success(decoders[command](response, *path_args))
        except DecodeError as e:
            logger.warning("could not decode response to %s: %s", command.name, e)
            return Failure(ResponseCode.UNKNOWN_ERROR)

    @staticmethod
    def error_code(response):
        """ the code of a structured error body, or UNKNOWN_ERROR when the body has none. """
        try:
            return decode_controller_error(response.body).code
        except DecodeError:
            logger.debug("status %s without an error body", response.status)
            return ResponseCode.UNKNOWN_ERROR

    def connect(self, timeout=None) -> Result:
        return self._execute(RestCommand.CONNECT, timeout=timeout)

    def list_panels(self) -> Result:
        return self._execute(RestCommand.LIST_PANELS)

    def get_panel(self, name) -> Result:
        return self._execute(RestCommand.GET_PANEL, (name,))

    def list_devices(self) -> Result:
        return self._execute(RestCommand.LIST_DEVICES)

    def get_device(self, name) -> Result:
        return self._execute(RestCommand.GET_DEVICE, (name,))

    def send_control_command(self, command) -> Result:
        return self._execute(RestCommand.SEND_CONTROL_COMMAND, (command.sender_id, command.data))

    def send_named_command(self, command, parameter=None) -> Result:
        """
        Sends a device command by name. The parameter, when given, is sent as a JSON body.
        """
        body = headers = None
        if parameter is not None and str(parameter) != '':
            body = json.dumps({'parameter': str(parameter)})
            headers = {'Content-Type': 'application/json'}
        return self._execute(RestCommand.SEND_NAMED_COMMAND, (command.device,), success=(200, 204),
                             query={'name': command.name}, body=body, headers=headers)

    def get_sensor_values(self, ids) -> Result:
        return self._execute(RestCommand.GET_SENSOR_VALUES, (ids,), quoted=(quote(join_ids(ids), safe=','),))

    def poll_sensors(self, token, ids, timeout=None) -> Result:
        """
        Long-polls for changes to the given sensors. The controller holds the request open until a value
        changes or its own timeout expires. A timeout on either side is an empty delta.
        """
        if not valid_url(self.base_url):
            return Failure(ResponseCode.INVALID_URL)
        command = RestCommand.POLL_SENSORS
        try:
            response = self._send(command, quoted=(segment(token), quote(join_ids(ids), safe=',')),
                                  timeout=self.poll_timeout if timeout is None else timeout)
        except TransportTimeoutError:
            logger.debug("poll %s timed out", token)
            return Success({})
        except TransportError as e:
            logger.warning("poll %s failed: %s", token, e)
            return Failure(ResponseCode.UNKNOWN_ERROR)
        if response.status == ResponseCode.TIME_OUT.code:
            return Success({})
        if response.status != 200:
            return Failure(self.error_code(response))
        try:
            error = decode_controller_error(response.body)
        except DecodeError:
            return self._decode(command, response, (token, ids))
        if error.code is ResponseCode.TIME_OUT:
            return Success({})
        return Failure(error.code)

    def get_resource_details(self, name) -> Result:
        return self._execute(RestCommand.GET_RESOURCE_DETAILS, (name,), quoted=(quote(str(name), safe='/'),))

    def get_resource_data(self, name) -> Result:
        return self._execute(RestCommand.GET_RESOURCE_DATA, (name,), quoted=(quote(str(name), safe='/'),))

    def logout(self) -> Result:
        """ ends the session. The transport's credentials are cleared whatever the outcome. """
        try:
            return self._execute(RestCommand.LOGOUT, success=(200, 401))
        finally:
            self.transport.set_credentials(None)

    def _discovery(self):
        if self.discovery_service is None:
            raise ConnectorError("no discovery service configured")
        return self.discovery_service

    def discovery_start(self, listener, tcp_port=None, duration=None):
        return self._discovery().start(listener, tcp_port, duration)

    def discovery_stop(self):
        return self._discovery().stop()

    @property
    def discovery_running(self):
        return self.discovery_service is not None and self.discovery_service.is_running
