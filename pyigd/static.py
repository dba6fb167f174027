from enum import IntEnum

SCHEME = "urn:schemas-upnp-org:service:WANIPConnection:1"
SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING = "http://schemas.xmlsoap.org/soap/encoding/"
CONTENT_TYPE = 'text/xml; charset="utf-8"'

# seconds to wait for the gateway to answer a control request
REQUEST_TIMEOUT = 10.0

# candidate external ports are drawn from [EPHEMERAL_PORT_MIN, EPHEMERAL_PORT_MAX)
EPHEMERAL_PORT_MIN = 32768
EPHEMERAL_PORT_MAX = 65535
ANY_PORT_ATTEMPTS = 20

MAX_MAPPING_ENTRIES = 1024


class UPnPErrorCode(IntEnum):
    INVALID_ACTION = 401
    STRING_ARGUMENT_TOO_LONG = 605
    ACTION_NOT_AUTHORIZED = 606
    SPECIFIED_ARRAY_INDEX_INVALID = 713
    NO_SUCH_ENTRY_IN_ARRAY = 714
    CONFLICT_IN_MAPPING_ENTRY = 718
    SAME_PORT_VALUES_REQUIRED = 724
    ONLY_PERMANENT_LEASES_SUPPORTED = 725
    NO_PORT_MAPS_AVAILABLE = 728
