"""
pyigd: UPnP Internet Gateway Device control, blocking or asyncio
Reports a router's external ip address and manages its NAT port mappings
"""

import logging

from pyigd.exceptions import (
    IGDError,
    RequestError,
    TransportError,
    InvalidResponse,
    ErrorCode,
    MappingError,
    ActionNotAuthorized,
    DescriptionTooLong,
    PortInUse,
    ExternalPortInUse,
    SamePortValuesRequired,
    OnlyPermanentLeasesSupported,
    NoPortsAvailable,
    NoSuchPortMapping,
    SpecifiedArrayIndexInvalid,
    ExternalPortZeroInvalid,
    InternalPortZeroInvalid,
)
from pyigd.models import AnyPortAllocator, Gateway, PortMappingEntry, PortMappingProtocol, random_port

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.2.0"
