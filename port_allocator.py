"""
Port Allocator Module

Chooses host-side ports for transient container ports and formats explicit
host -> container bindings for mapped ports. Nothing is reserved here: the
random pick is best effort and may collide with a port already in use.
"""

import random
from typing import Dict, Iterable, List

from config import BIND_ADDRESS, PORT_RANGE_END, PORT_RANGE_START
from models import MappedPort, PortMapping

# Process-wide generator, shared by every allocation
_random = random.Random()


def random_host_port(start: int = PORT_RANGE_START, end: int = PORT_RANGE_END) -> int:
    """Pick a host port uniformly from [start, end)"""
    return _random.randrange(start, end)


def allocate_transient_ports(ports: Iterable[int]) -> Dict[int, List[PortMapping]]:
    """Bind each distinct container port to a randomly chosen host port"""
    bindings = {}
    for container_port in ports:
        bindings[container_port] = [
            PortMapping(
                container_port=container_port,
                host_port=random_host_port(),
                host_ip=BIND_ADDRESS,
            )
        ]
    return bindings


def map_fixed_ports(mapped_ports: Iterable[MappedPort]) -> Dict[int, List[PortMapping]]:
    """Bind caller-fixed host ports to their target container ports"""
    bindings: Dict[int, List[PortMapping]] = {}
    for mapped in mapped_ports:
        bindings.setdefault(mapped.container_port, []).append(
            PortMapping(
                container_port=mapped.container_port,
                host_port=mapped.host_port,
                host_ip=BIND_ADDRESS,
            )
        )
    return bindings


def build_port_bindings(
    transient_ports: Iterable[int], mapped_ports: Iterable[MappedPort]
) -> Dict[int, List[PortMapping]]:
    """Full host binding table for a container, keyed by container port"""
    bindings = allocate_transient_ports(transient_ports)
    for container_port, mappings in map_fixed_ports(mapped_ports).items():
        bindings.setdefault(container_port, []).extend(mappings)
    return bindings
