from pyigd.models.protocol import PortMappingProtocol
from pyigd.models.mapping import PortMappingEntry
from pyigd.models.allocator import AnyPortAllocator, random_port
from pyigd.models.gateway import Gateway
