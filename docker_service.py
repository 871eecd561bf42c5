"""
Docker Service Module - Main API Interface

Provisions one ephemeral container for a test harness and hands back a
ContainerHandle with the host ports the engine actually bound.

Module layout:
- port_allocator.py: host port selection for transient and mapped ports
- engine_connector.py: local socket vs. remote TLS engine discovery
- container_spec.py: container creation request assembly
- readiness.py: log-based readiness wait
- container_orchestrator.py: the provisioning sequence
"""

import threading
from typing import Optional

from models import (
    ClientConfig,
    ContainerHandle,
    ContainerSpec,
    EnvironmentVar,
    MappedPort,
    PortMapping,
)
from container_spec import ContainerSpecBuilder, Customizer, build_container_spec
from container_orchestrator import ContainerOrchestrator
from engine_connector import EngineConnector
from readiness import LogReadinessWaiter
from utils import (
    ContainerExitedError,
    DockerCreatorException,
    EngineConnectionError,
    EngineRequestError,
    PortResolutionError,
    ReadinessInterruptedError,
    ReadinessTimeoutError,
)


def create_container(
    config: ClientConfig,
    customize: Optional[Customizer] = None,
    interrupt: Optional[threading.Event] = None,
) -> ContainerHandle:
    """Provision a container and block until it is ready

    Args:
        config: What to run and how to expose it
        customize: Optional callback that mutates the ContainerSpecBuilder
            before the spec is finalized (labels, binds, resource limits, ...)
        interrupt: Optional event; setting it aborts the readiness wait

    Returns:
        ContainerHandle: The started container. The caller owns its cleanup.
    """
    return ContainerOrchestrator(customize=customize, interrupt=interrupt).create(config)


# Public API exports
__all__ = [
    # Models
    "ClientConfig",
    "ContainerHandle",
    "ContainerSpec",
    "EnvironmentVar",
    "MappedPort",
    "PortMapping",
    # Components
    "ContainerOrchestrator",
    "ContainerSpecBuilder",
    "EngineConnector",
    "LogReadinessWaiter",
    "build_container_spec",
    "create_container",
    # Errors
    "ContainerExitedError",
    "DockerCreatorException",
    "EngineConnectionError",
    "EngineRequestError",
    "PortResolutionError",
    "ReadinessInterruptedError",
    "ReadinessTimeoutError",
]
