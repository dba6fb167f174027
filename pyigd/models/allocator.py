"""
Any-port allocation

Asks the gateway for a mapping without the caller picking the external port.
AddAnyPortMapping is tried first with a random hint. Gateways that do not know
that action (401) get AddPortMapping with random ports instead: up to
ANY_PORT_ATTEMPTS tries while the port is taken (718), and a single try with
the internal port if the gateway wants both ports equal (724).
"""

import logging
import random
from typing import Callable, Optional, Tuple, Union
from datetime import timedelta

import aiohttp

from pyigd.static import (
    ANY_PORT_ATTEMPTS,
    EPHEMERAL_PORT_MAX,
    EPHEMERAL_PORT_MIN,
    REQUEST_TIMEOUT,
    UPnPErrorCode,
)
from pyigd.exceptions import (
    ActionNotAuthorized,
    DescriptionTooLong,
    ErrorCode,
    ExternalPortInUse,
    InternalPortZeroInvalid,
    NoPortsAvailable,
    OnlyPermanentLeasesSupported,
    RequestError,
    translate_fault,
)
from pyigd.models.protocol import PortMappingProtocol
from pyigd.models.mapping import check_port

logger = logging.getLogger(__name__)

PortSource = Callable[[], int]

ANY_PORT_FAULTS = {
    UPnPErrorCode.STRING_ARGUMENT_TOO_LONG: DescriptionTooLong,
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.NO_PORT_MAPS_AVAILABLE: NoPortsAvailable,
}
# 728 is only expected from AddAnyPortMapping, it is not translated here
FALLBACK_FAULTS = {
    UPnPErrorCode.STRING_ARGUMENT_TOO_LONG: DescriptionTooLong,
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.ONLY_PERMANENT_LEASES_SUPPORTED: OnlyPermanentLeasesSupported,
}
SAME_PORT_FAULTS = {
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.CONFLICT_IN_MAPPING_ENTRY: ExternalPortInUse,
    UPnPErrorCode.ONLY_PERMANENT_LEASES_SUPPORTED: OnlyPermanentLeasesSupported,
}


def random_port() -> int:
    """
    Returns a random port number from the dynamic range
    """

    return random.randrange(EPHEMERAL_PORT_MIN, EPHEMERAL_PORT_MAX)


def _is_fault(error: RequestError, code: UPnPErrorCode) -> bool:
    return isinstance(error, ErrorCode) and error.code == code


class AnyPortAllocator:
    def __init__(self, gateway, port_source: Optional[PortSource] = None):
        """
        gateway - Gateway to allocate on
        port_source - callable returning candidate external ports (default is random_port)
        """

        self.gateway = gateway
        self.port_source = port_source or random_port

    async def allocate(
        self,
        protocol: Union[PortMappingProtocol, str],
        local_addr: Tuple[str, int],
        lease_duration: Union[int, timedelta],
        description: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> int:
        """
        Maps some external port to local_addr

        Returns the external port the gateway mapped
        """

        check_port(local_addr[1], InternalPortZeroInvalid)

        try:
            return await self.gateway._add_any_port_mapping(
                protocol, self.port_source(), local_addr, lease_duration, description,
                session=session, timeout=timeout,
            )
        except RequestError as e:
            if not _is_fault(e, UPnPErrorCode.INVALID_ACTION):
                raise translate_fault(e, ANY_PORT_FAULTS)

        logger.debug("%s does not support AddAnyPortMapping, trying AddPortMapping", self.gateway)
        return await self._allocate_fixed(
            protocol, local_addr, lease_duration, description, session, timeout
        )

    async def _allocate_fixed(self, protocol, local_addr, lease_duration, description, session, timeout) -> int:
        for _ in range(ANY_PORT_ATTEMPTS):
            external_port = self.port_source()
            try:
                await self.gateway._add_port_mapping(
                    protocol, external_port, local_addr, lease_duration, description,
                    session=session, timeout=timeout,
                )
                return external_port
            except RequestError as e:
                if _is_fault(e, UPnPErrorCode.CONFLICT_IN_MAPPING_ENTRY):
                    logger.debug("External port %d is taken, trying another", external_port)
                    continue
                if _is_fault(e, UPnPErrorCode.SAME_PORT_VALUES_REQUIRED):
                    logger.debug("%s requires equal ports, trying %d", self.gateway, local_addr[1])
                    return await self._allocate_same_port(
                        protocol, local_addr, lease_duration, description, session, timeout
                    )
                raise translate_fault(e, FALLBACK_FAULTS)

        logger.warning("No free external port found after %d attempts", ANY_PORT_ATTEMPTS)
        raise NoPortsAvailable

    async def _allocate_same_port(self, protocol, local_addr, lease_duration, description, session, timeout) -> int:
        internal_port = local_addr[1]
        try:
            await self.gateway._add_port_mapping(
                protocol, internal_port, local_addr, lease_duration, description,
                session=session, timeout=timeout,
            )
        except RequestError as e:
            raise translate_fault(e, SAME_PORT_FAULTS)
        return internal_port
