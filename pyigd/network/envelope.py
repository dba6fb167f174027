from typing import Any, NamedTuple, Sequence, Tuple
from xml.sax.saxutils import escape

from pyigd.static import SCHEME, SOAP_ENVELOPE_NS, SOAP_ENCODING


class SoapRequest(NamedTuple):
    header: str
    body: str


def make_header(action: str) -> str:
    """
    Generates the SOAPAction header value, quotes included

    action - UPnP action name
    """

    return '"{scheme}#{action}"'.format(scheme=SCHEME, action=action)


def make_body(action: str, params: Sequence[Tuple[str, Any]]) -> str:
    """
    Generates the SOAP envelope for an action

    action - UPnP action name
    params - (name, value) pairs, rendered in the given order
    """

    # some routers insist on the argument order, keep it as given
    content = "".join(
        "<{name}>{value}</{name}>".format(name=name, value=escape(str(value)))
        for name, value in params
    )

    return (
        '<?xml version="1.0"?>'
        '<SOAP-ENV:Envelope SOAP-ENV:encodingStyle="{encoding}" xmlns:SOAP-ENV="{envelope}">'
        "<SOAP-ENV:Body>"
        '<u:{action} xmlns:u="{scheme}">{content}</u:{action}>'
        "</SOAP-ENV:Body>"
        "</SOAP-ENV:Envelope>"
    ).format(
        encoding=SOAP_ENCODING,
        envelope=SOAP_ENVELOPE_NS,
        action=action,
        scheme=SCHEME,
        content=content,
    )


def build_request(action: str, params: Sequence[Tuple[str, Any]] = ()) -> SoapRequest:
    return SoapRequest(make_header(action), make_body(action, params))
