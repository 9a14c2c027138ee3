"""
The request/response contract the dispatcher relies on, and the default implementation over HTTP.

A transport performs exactly one request per call and either returns the status, headers and body,
or raises TransportError. A request that exceeds its timeout raises TransportTimeoutError so that
callers can tell "the controller held the request open" apart from other failures.
"""
import logging
from abc import abstractmethod

import requests
from requests.structures import CaseInsensitiveDict

from controllerconsole.connector.base import ConnectorError

logger = logging.getLogger(__name__)


class TransportError(ConnectorError):
    """ The request could not be completed. """


class TransportTimeoutError(TransportError):
    """ No response arrived within the request timeout. """


class TransportResponse:
    def __init__(self, status, headers=None, body=b''):
        self.status = status
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body

    def __repr__(self):
        return "TransportResponse(%r, %d bytes)" % (self.status, len(self.body or b''))


class Transport:
    """ Performs single requests against the controller. """

    @abstractmethod
    def request(self, method, url, headers=None, body=None, timeout=None) -> TransportResponse:
        """
        :param method: the HTTP method name
        :param url: the absolute url
        :param headers: extra request headers
        :param body: the request body as str or bytes, or None for no body
        :param timeout: the timeout in seconds for this request
        """
        raise NotImplementedError

    def set_credentials(self, credentials):
        """ sets the credentials used for subsequent requests. None clears them. """

    def close(self):
        """ releases pooled connections. Requests still in flight may fail. """


class RequestsTransport(Transport):
    """
    A transport using a requests Session. Credentials are sent as HTTP basic auth.
    """

    def __init__(self, session: requests.Session=None):
        self.session = session or requests.Session()
        self.session.headers['Accept'] = 'application/json'

    def set_credentials(self, credentials):
        self.session.auth = (credentials.username, credentials.password) if credentials else None

    def request(self, method, url, headers=None, body=None, timeout=None) -> TransportResponse:
        logger.debug("%s %s timeout=%s", method, url, timeout)
        try:
            response = self.session.request(method, url, headers=headers, data=body, timeout=timeout)
        except requests.Timeout as e:
            raise TransportTimeoutError("%s %s timed out after %ss" % (method, url, timeout)) from e
        except requests.RequestException as e:
            raise TransportError("%s %s failed: %s" % (method, url, e)) from e
        return TransportResponse(response.status_code, response.headers, response.content)

    def close(self):
        self.session.close()
