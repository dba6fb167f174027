import logging
from typing import Optional, Tuple

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import Tag
from lxml import etree

from pyigd.exceptions import ErrorCode, InvalidResponse

logger = logging.getLogger(__name__)


def child(tag: Optional[Tag], name: str) -> Optional[Tag]:
    """
    Returns the direct child element of tag called name, or None
    """

    if tag is None:
        return None
    return tag.find(name, recursive=False)


def child_text(tag: Optional[Tag], name: str) -> Optional[str]:
    """
    Returns the text of the direct child element of tag called name,
        None if there is no such child or it has no text
    """

    element = child(tag, name)
    if element is None or element.string is None:
        return None
    return str(element.string)


def is_well_formed(text: str) -> bool:
    """
    Strict parse of text; lxml-xml on its own repairs broken documents
    """

    try:
        etree.fromstring(text.encode("utf-8"), etree.XMLParser(recover=False, resolve_entities=False))
    except (etree.XMLSyntaxError, ValueError):
        return False
    return True


def parse_response(text: str, ok: str) -> Tuple[str, Tag]:
    """
    Interprets a control response

    text - response from the gateway
    ok - name of the element that signals success, e.g. "GetExternalIPAddressResponse"

    Returns tuple of the raw text and the detached success element
    Raises ErrorCode for a well formed UPnP fault, InvalidResponse for anything else
    """

    if not is_well_formed(text):
        raise InvalidResponse(text)

    try:
        parser = BeautifulSoup(text, "lxml-xml")
    except ParserRejectedMarkup:
        raise InvalidResponse(text) from None
    envelope = parser.find(True, recursive=False)
    body = child(envelope, "Body")
    if body is None:
        raise InvalidResponse(text)

    # success is looked for before any fault
    response = child(body, ok)
    if response is not None:
        return text, response.extract()

    upnp_error = child(child(child(body, "Fault"), "detail"), "UPnPError")
    code = child_text(upnp_error, "errorCode")
    description = child_text(upnp_error, "errorDescription")
    if code is None or description is None:
        raise InvalidResponse(text)

    code = code.strip()
    if not (code.isascii() and code.isdigit()) or int(code) > 0xFFFF:
        raise InvalidResponse(text)

    logger.debug("Gateway fault %s: %s", code, description)
    raise ErrorCode(int(code), description)
