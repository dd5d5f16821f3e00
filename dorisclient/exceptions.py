"""
Exceptions raised by the Doris CDC serializer.

Only malformed input and row rendering failures escape the row path.
Schema change failures are logged and reported as a False result.
"""


class DorisException(Exception):
    """Base exception for Doris serializer operations"""
    pass


class MalformedPayloadException(DorisException):
    """Raised when a change envelope is not a well-formed JSON object"""
    pass


class SerializationException(DorisException):
    """Raised when a normalized row cannot be rendered as JSON"""
    pass


class UnsupportedTypeException(DorisException):
    """Raised when a source column type has no Doris equivalent"""
    pass


class DorisConfigException(DorisException):
    """Raised when the Doris connection options are unusable"""
    pass
