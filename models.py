from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Tuple

from config import BIND_ADDRESS


class EnvironmentVar(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str

    def to_env_string(self) -> str:
        return f"{self.name}={self.value}"


class MappedPort(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_port: int
    container_port: int


class ClientConfig(BaseModel):
    """Everything needed to provision one container"""

    model_config = ConfigDict(frozen=True)

    image_name: str
    env_vars: Tuple[EnvironmentVar, ...] = ()
    arguments: Optional[str] = None  # e.g. "run --flag value", split on spaces
    transient_ports: Tuple[int, ...] = ()  # host port picked at random
    mapped_ports: Tuple[MappedPort, ...] = ()  # host port fixed by the caller
    wait_for_log_line: Optional[str] = None
    pull_always: bool = False
    docker_machine_url: Optional[str] = None
    wait_timeout: Optional[float] = None  # None waits forever

    def with_env(self, name: str, value: str) -> "ClientConfig":
        env_vars = (*self.env_vars, EnvironmentVar(name=name, value=value))
        return self.model_copy(update={"env_vars": env_vars})

    def with_transient_port(self, port: int) -> "ClientConfig":
        return self.model_copy(update={"transient_ports": (*self.transient_ports, port)})

    def with_mapped_port(self, host_port: int, container_port: int) -> "ClientConfig":
        mapped = MappedPort(host_port=host_port, container_port=container_port)
        return self.model_copy(update={"mapped_ports": (*self.mapped_ports, mapped)})


class PortMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    container_port: int
    host_port: int
    host_ip: str = BIND_ADDRESS

    def as_binding(self):
        """Binding tuple in the form the docker SDK expects"""
        return (self.host_ip, self.host_port)


class ContainerSpec(BaseModel):
    """Finalized container creation request"""

    model_config = ConfigDict(frozen=True)

    image: str
    environment: List[str] = []
    command: Optional[List[str]] = None
    exposed_ports: List[int] = []
    port_bindings: Dict[int, List[PortMapping]] = {}
    network_disabled: bool = False
    labels: Dict[str, str] = {}
    binds: List[str] = []
    host_config_extra: Dict[str, Any] = {}
    create_extra: Dict[str, Any] = {}

    def bindings_for(self, container_port: int) -> List[PortMapping]:
        return self.port_bindings.get(container_port, [])


class ContainerHandle(BaseModel):
    """A started, ready container. Cleanup is left to the caller."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    container_id: str
    info: Dict[str, Any] = Field(default_factory=dict)
    ports: Dict[int, int] = Field(default_factory=dict)  # container port -> host port
    docker_host: str
    client: Any = Field(default=None, repr=False)

    def host_port(self, container_port: int) -> int:
        """Actual host port bound to a transient container port

        Raises:
            KeyError: If the port was not declared as transient
        """
        return self.ports[container_port]

    def url(self, container_port: int, scheme: str = "http") -> str:
        return f"{scheme}://{self.docker_host}:{self.host_port(container_port)}"
