"""
Response codes reported to callbacks.

Codes with a number are the HTTP-like codes the controller itself emits, either as the response status
or inside a structured error body. Codes without a number are raised on the client side.
"""
from enum import Enum


class ResponseCode(Enum):
    OK = (200, "OK")
    NO_CONTENT = (204, "No content")
    UNAUTHORIZED = (401, "Unauthorized")
    FORBIDDEN = (403, "Forbidden")
    NOT_FOUND = (404, "Not found")
    CMD_BUILDER_ERROR = (418, "Command builder error")
    NO_SUCH_COMPONENT = (419, "No such component")
    NO_SUCH_CMD_BUILDER = (420, "No such command builder")
    INVALID_COMMAND_TYPE = (421, "Invalid command type")
    CONTROLLER_XML_NOT_FOUND = (422, "Controller definition not found")
    NO_SUCH_CMD = (423, "No such command")
    INVALID_CONTROLLER_XML = (424, "Invalid controller definition")
    INVALID_POLLING_URL = (425, "Invalid polling URL")
    PANEL_XML_NOT_FOUND = (426, "Panel definition not found")
    INVALID_PANEL_XML = (427, "Invalid panel definition")
    NO_SUCH_PANEL = (428, "No such panel")
    INVALID_ELEMENT = (429, "Invalid element")
    SERVER_ERROR = (500, "Server error")
    TIME_OUT = (504, "Time out")

    INVALID_URL = (None, "Invalid controller URL")
    NO_RESPONSE = (None, "No response from controller")
    UNKNOWN_ERROR = (None, "Unknown error")
    DISCONNECTED = (None, "Disconnected")
    UNREGISTERED = (None, "Unregistered")
    ALREADY_REGISTERED = (None, "Already registered")
    NULL_TARGET = (None, "No panel or device given")

    def __init__(self, code, description):
        self.code = code
        self.description = description

    @classmethod
    def from_code(cls, code):
        """
        Looks up a code by its number.
        >>> ResponseCode.from_code(504)
        <ResponseCode.TIME_OUT: (504, 'Time out')>
        >>> ResponseCode.from_code(999) is None
        True
        """
        for member in cls:
            if member.code is not None and member.code == code:
                return member
        return None

    @classmethod
    def parse(cls, value):
        """
        Resolves the value found in a structured error body: a member name, or a number,
        possibly given as a string.
        >>> ResponseCode.parse("TIME_OUT")
        <ResponseCode.TIME_OUT: (504, 'Time out')>
        >>> ResponseCode.parse("428")
        <ResponseCode.NO_SUCH_PANEL: (428, 'No such panel')>
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_code(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name in cls.__members__:
                return cls.__members__[name]
            if name.isdigit():
                return cls.from_code(int(name))
        return None
