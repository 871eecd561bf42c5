"""
Container Orchestrator Module

Provisions a single container: build the spec, connect to the engine, make
the image available, create and start the container, wait for readiness and
resolve the host ports the engine actually bound.
"""

import threading
import time
from typing import Dict, Optional
from urllib.parse import urlparse

import docker
from docker.errors import DockerException

from container_spec import (
    ContainerSpecBuilder,
    Customizer,
    build_container_spec,
    create_container_kwargs,
)
from engine_connector import EngineConnector
from models import ClientConfig, ContainerHandle, ContainerSpec
from readiness import LogReadinessWaiter
from utils import (
    PROVISION_LATENCY,
    EngineRequestError,
    PortResolutionError,
    log_container_operation,
    logger,
)


def resolve_docker_host(client: docker.DockerClient) -> str:
    """Host name that reaches ports published by the engine"""
    base_url = getattr(client.api, "base_url", "") or ""
    parsed = urlparse(base_url)
    # unix sockets and named pipes publish on the local machine
    if parsed.scheme.startswith("http+") or not parsed.hostname:
        return "localhost"
    return parsed.hostname


def resolve_host_ports(info: Dict, transient_ports) -> Dict[int, int]:
    """Map each transient container port to the host port the engine bound"""
    ports = (info.get("NetworkSettings") or {}).get("Ports") or {}
    resolved = {}
    for container_port in transient_ports:
        bindings = ports.get(f"{container_port}/tcp") or []
        if not bindings or not bindings[0].get("HostPort"):
            raise PortResolutionError(
                f"Engine reported no host binding for port {container_port}/tcp",
                container_port=container_port,
            )
        resolved[container_port] = int(bindings[0]["HostPort"])
    return resolved


class ContainerOrchestrator:
    """Provision-once, fail-fast container creation.

    Subclasses may override create_docker_client, add_custom_configs and
    wait_for_log, or swap builder_class and connector_class.
    """

    builder_class = ContainerSpecBuilder
    connector_class = EngineConnector

    def __init__(
        self,
        customize: Optional[Customizer] = None,
        interrupt: Optional[threading.Event] = None,
    ):
        self.customize = customize
        self.interrupt = interrupt

    def add_custom_configs(self, builder: ContainerSpecBuilder):
        """Extension point, runs after the config is applied"""
        if self.customize is not None:
            self.customize(builder)

    def build_spec(self, config: ClientConfig) -> ContainerSpec:
        return build_container_spec(
            config, customize=self.add_custom_configs, builder_class=self.builder_class
        )

    def create_docker_client(self, config: ClientConfig) -> docker.DockerClient:
        connector = self.connector_class(machine_url=config.docker_machine_url)
        result = connector.connect()
        for failure in result.failures:
            logger.warning(
                "Engine connection candidate failed",
                source=failure.source,
                error=str(failure.error),
            )
        logger.info("Connected to container engine", source=result.source)
        return result.client

    def ensure_image(self, api, config: ClientConfig):
        """Pull when forced, otherwise only if the image is not present"""
        image = config.image_name
        if not config.pull_always:
            try:
                api.inspect_image(image)
                logger.info("Image available locally", image=image)
                return
            except Exception as e:
                logger.info("Image not available locally", image=image, error=str(e))

        logger.info("Pulling image", image=image)
        try:
            api.pull(image)
        except DockerException as e:
            log_container_operation("pull", image, "failed", {"error": str(e)})
            raise EngineRequestError(f"Failed to pull image {image}: {e}", "pull") from e
        log_container_operation("pull", image, "success")

    def wait_for_log(self, api, container_id: str, config: ClientConfig):
        waiter = LogReadinessWaiter(timeout=config.wait_timeout, interrupt=self.interrupt)
        waiter.wait(api, container_id, config.wait_for_log_line)
        log_container_operation("wait", container_id, "success")

    def _request(self, operation: str, target: str, call, *args, **kwargs):
        try:
            result = call(*args, **kwargs)
        except DockerException as e:
            log_container_operation(operation, target, "failed", {"error": str(e)})
            raise EngineRequestError(f"{operation} failed for {target}: {e}", operation) from e
        log_container_operation(operation, target, "success")
        return result

    def create(self, config: ClientConfig) -> ContainerHandle:
        started_at = time.time()
        spec = self.build_spec(config)

        client = self.create_docker_client(config)
        api = client.api

        self.ensure_image(api, config)

        created = self._request(
            "create",
            config.image_name,
            api.create_container,
            **create_container_kwargs(spec, api),
        )
        container_id = created["Id"]

        self._request("start", container_id, api.start, container_id)

        if config.wait_for_log_line:
            self.wait_for_log(api, container_id, config)

        info = self._request("inspect", container_id, api.inspect_container, container_id)
        ports = resolve_host_ports(info, config.transient_ports)

        PROVISION_LATENCY.observe(time.time() - started_at)
        logger.info(
            "Container ready",
            container_id=container_id,
            image=config.image_name,
            ports=ports,
        )
        return ContainerHandle(
            container_id=container_id,
            info=info,
            ports=ports,
            docker_host=resolve_docker_host(client),
            client=client,
        )
