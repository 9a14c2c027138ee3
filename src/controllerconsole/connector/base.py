from enum import Enum


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionConnectedError(ConnectorError):
    """ Indicates an operation that requires a disconnected connector was attempted while connected. """


class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """
    def __init__(self, connector, code=None):
        super().__init__(connector)
        self.code = code
