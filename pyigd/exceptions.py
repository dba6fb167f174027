from typing import Mapping, Type


class IGDError(Exception):
    """
    Base class of every error raised while talking to a gateway
    """


class RequestError(IGDError):
    """
    A control request could not be completed
    """


class TransportError(RequestError):
    """
    Connection, DNS, timeout or HTTP level failure
    """


class InvalidResponse(RequestError):
    """
    The gateway answered with something that is neither a success element
    nor a well formed UPnP fault

    text - the raw response, kept for diagnosis
    """

    def __init__(self, text: str):
        super().__init__("Invalid response from gateway")
        self.text = text


class ErrorCode(RequestError):
    """
    The gateway rejected the request with a UPnP fault

    code - numeric UPnP error code
    description - errorDescription sent by the gateway
    """

    def __init__(self, code: int, description: str):
        super().__init__(f"Gateway returned error {code}: {description}")
        self.code = code
        self.description = description


class MappingError(IGDError):
    """
    Base class of the named, action specific outcomes
    """

    message = "The gateway refused the request"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class ActionNotAuthorized(MappingError):
    message = "The client is not authorized to perform the operation"


class DescriptionTooLong(MappingError):
    message = "The description was too long for the gateway to handle"


class PortInUse(MappingError):
    message = "The requested port is already mapped on the gateway"


class ExternalPortInUse(MappingError):
    message = "The gateway requires the external port to equal the internal port, which is in use"


class SamePortValuesRequired(MappingError):
    message = "The gateway requires the external port to equal the internal port"


class OnlyPermanentLeasesSupported(MappingError):
    message = "The gateway only supports permanent leases (a lease duration of 0)"


class NoPortsAvailable(MappingError):
    message = "The gateway has no free external ports left"


class NoSuchPortMapping(MappingError):
    message = "The gateway has no such port mapping"


class SpecifiedArrayIndexInvalid(MappingError):
    message = "The port mapping index is out of range"


class ExternalPortZeroInvalid(MappingError, ValueError):
    message = "The external port cannot be 0"


class InternalPortZeroInvalid(MappingError, ValueError):
    message = "The internal port cannot be 0"


def translate_fault(error: RequestError, table: Mapping[int, Type[MappingError]]) -> IGDError:
    """
    Maps a fault onto the named outcome a given action defines for it

    error - error raised by the request layer
    table - fault code to outcome class, one table per action

    Returns the named outcome (chained to error) if the code is in the table,
        error itself otherwise
    """

    if isinstance(error, ErrorCode) and error.code in table:
        outcome = table[error.code]()
        outcome.__cause__ = error
        return outcome
    return error
