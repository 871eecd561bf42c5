import pytest
from unittest.mock import Mock
from docker.errors import ImageNotFound


class FakeDockerApi:
    """Stand-in for docker.APIClient that records every call"""

    def __init__(
        self,
        host_ports=None,
        log_chunks=None,
        image_present=True,
        base_url="http+docker://localhost",
    ):
        self.base_url = base_url
        self.host_ports = host_ports or {}
        self.log_chunks = list(log_chunks or [])
        self.image_present = image_present
        self.calls = []
        self.created = None
        self.host_config = None

    def call_names(self):
        return [call[0] for call in self.calls]

    def inspect_image(self, image):
        self.calls.append(("inspect_image", image))
        if not self.image_present:
            raise ImageNotFound(f"No such image: {image}")
        return {"Id": "sha256:abc123"}

    def pull(self, image):
        self.calls.append(("pull", image))
        return ""

    def create_host_config(self, **kwargs):
        self.host_config = kwargs
        return {"fake_host_config": kwargs}

    def create_container(self, **kwargs):
        self.calls.append(("create_container", kwargs))
        self.created = kwargs
        return {"Id": "c0ffee"}

    def start(self, container_id):
        self.calls.append(("start", container_id))

    def attach(self, container_id, **kwargs):
        self.calls.append(("attach", container_id, kwargs))
        return iter(self.log_chunks)

    def inspect_container(self, container_id):
        self.calls.append(("inspect_container", container_id))
        ports = {
            f"{port}/tcp": [{"HostIp": "0.0.0.0", "HostPort": str(host_port)}]
            for port, host_port in self.host_ports.items()
        }
        return {"Id": container_id, "NetworkSettings": {"Ports": ports}}


@pytest.fixture
def fake_api():
    return FakeDockerApi()


@pytest.fixture
def fake_client(fake_api):
    client = Mock()
    client.api = fake_api
    return client
