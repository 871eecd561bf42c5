"""
Engine Connector Module

Works out how to reach a container engine. Candidates are tried in order and
the first one that yields a working client wins:

- environment: docker.from_env(), used on Unix-like hosts or when DOCKER_HOST
  is set
- machine: a TLS client pointed at a docker-machine style endpoint, using
  certificates from the per-user certificate directory when they load

Failures are collected and handed back to the caller rather than logged here.
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Mapping, Optional, Tuple

import docker
from docker.errors import DockerException
from docker.tls import TLSConfig

from config import DOCKER_CERT_PATH, DOCKER_HOST_ENV, DOCKER_MACHINE_SERVICE_URL
from utils import EngineConnectionError

ClientFactory = Callable[[], docker.DockerClient]


@dataclass
class ConnectFailure:
    source: str
    error: Exception


@dataclass
class ConnectionResult:
    client: docker.DockerClient
    source: str
    failures: List[ConnectFailure] = field(default_factory=list)


def is_unix_name(os_name: str) -> bool:
    os_name = os_name.lower()
    return "nix" in os_name or "nux" in os_name or "aix" in os_name


def normalize_engine_url(url: str) -> str:
    """The docker SDK only understands tcp:// for remote TCP engines"""
    if url.startswith("https://"):
        return "tcp://" + url[len("https://") :]
    if url.startswith("http://"):
        return "tcp://" + url[len("http://") :]
    return url


def load_tls_config(cert_path: str) -> TLSConfig:
    """Load ca.pem, cert.pem and key.pem from a certificate directory

    Raises:
        TLSParameterError: If any of the files is missing
    """
    path = Path(cert_path)
    return TLSConfig(
        client_cert=(str(path / "cert.pem"), str(path / "key.pem")),
        ca_cert=str(path / "ca.pem"),
        verify=True,
    )


class EngineConnector:
    def __init__(
        self,
        machine_url: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        os_name: Optional[str] = None,
        cert_path: str = DOCKER_CERT_PATH,
    ):
        self.machine_url = machine_url or DOCKER_MACHINE_SERVICE_URL
        self.environ = os.environ if environ is None else environ
        self.os_name = os_name if os_name is not None else platform.system()
        self.cert_path = cert_path

    def is_unix(self) -> bool:
        return is_unix_name(self.os_name)

    def use_environment(self) -> bool:
        return self.is_unix() or self.environ.get(DOCKER_HOST_ENV) is not None

    def from_environment(self) -> docker.DockerClient:
        return docker.from_env(environment=dict(self.environ))

    def load_certificates(self) -> Tuple[Optional[TLSConfig], Optional[Exception]]:
        """TLS material for the machine endpoint, or the reason there is none"""
        try:
            return load_tls_config(self.cert_path), None
        except DockerException as e:
            return None, e

    def from_machine(self, tls: Optional[TLSConfig]) -> docker.DockerClient:
        base_url = normalize_engine_url(self.machine_url)
        if tls is None:
            return docker.DockerClient(base_url=base_url)
        return docker.DockerClient(base_url=base_url, tls=tls)

    def candidates(self, failures: List[ConnectFailure]) -> Iterator[Tuple[str, ClientFactory]]:
        """Ordered (source, factory) pairs.

        Certificates are only loaded once the environment candidate has been
        given its chance; a load failure is recorded in failures.
        """
        if self.use_environment():
            yield "environment", self.from_environment

        tls, error = self.load_certificates()
        if error is not None:
            failures.append(ConnectFailure(source="certificates", error=error))
        yield "machine", lambda: self.from_machine(tls)

    def connect(self) -> ConnectionResult:
        """Return the first client any candidate can build

        Raises:
            EngineConnectionError: If every candidate failed
        """
        failures: List[ConnectFailure] = []
        for source, factory in self.candidates(failures):
            try:
                client = factory()
            except DockerException as e:
                failures.append(ConnectFailure(source=source, error=e))
                continue
            return ConnectionResult(client=client, source=source, failures=failures)

        summary = "; ".join(f"{f.source}: {f.error}" for f in failures)
        raise EngineConnectionError(
            f"Could not connect to a container engine ({summary})", failures=failures
        )
