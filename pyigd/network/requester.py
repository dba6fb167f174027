import asyncio
import logging
from typing import Any, Coroutine, Dict, Optional, TypeVar

import aiohttp

from pyigd.static import CONTENT_TYPE, REQUEST_TIMEOUT
from pyigd.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_headers(header: str) -> Dict[str, str]:
    """
    Generates headers for request

    header - SOAPAction value
    """

    return {
        "SOAPAction": header,
        "Content-Type": CONTENT_TYPE,
    }


async def _post(session: aiohttp.ClientSession, url: str, header: str, body: str, timeout: float) -> str:
    async with session.post(
        url,
        headers=make_headers(header),
        data=body.encode("utf-8"),
        timeout=aiohttp.ClientTimeout(total=timeout),
    ) as response:
        # faults come back as HTTP 500, the body is what matters
        text = await response.text(errors="replace")
        logger.debug("Gateway %s answered HTTP %d", url, response.status)
        return text


async def send_async(
    url: str,
    header: str,
    body: str,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """
    POSTs a SOAP envelope to a control url and returns the response text

    url - control url of the gateway
    header - SOAPAction value
    body - SOAP envelope
    session - session to send on, left open (default is a session for this call only)
    timeout - seconds to wait for the whole exchange

    Raises TransportError on connection, DNS, timeout or HTTP failure
    """

    logger.debug("Sending %s to %s", header, url)
    try:
        if session is None:
            async with aiohttp.ClientSession() as own_session:
                return await _post(own_session, url, header, body, timeout)
        return await _post(session, url, header, body, timeout)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        logger.debug("Request %s to %s failed: %r", header, url, e)
        raise TransportError(f"Could not reach gateway at {url}: {e!r}") from e


def run_blocking(coro: Coroutine[Any, Any, T]) -> T:
    """
    Drives a coroutine to completion on a private event loop

    Raises RuntimeError, with coro closed unstarted, if called from a running event loop
    """

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("Blocking call made from a running event loop, await the _async form instead")


def send(url: str, header: str, body: str, timeout: float = REQUEST_TIMEOUT) -> str:
    """
    Blocking form of send_async
    """

    return run_blocking(send_async(url, header, body, timeout=timeout))
