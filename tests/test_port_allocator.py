import pytest
from unittest.mock import patch

import port_allocator
from config import PORT_RANGE_END, PORT_RANGE_START
from models import MappedPort
from port_allocator import (
    allocate_transient_ports,
    build_port_bindings,
    map_fixed_ports,
    random_host_port,
)


class TestTransientPorts:
    """Test cases for random host port selection"""

    def test_ports_bound_to_all_interfaces_within_range(self):
        """Each transient port gets one binding on 0.0.0.0 inside the range"""
        bindings = allocate_transient_ports([8080, 5432])

        assert set(bindings) == {8080, 5432}
        for container_port, mappings in bindings.items():
            assert len(mappings) == 1
            assert mappings[0].host_ip == "0.0.0.0"
            assert mappings[0].container_port == container_port
            assert PORT_RANGE_START <= mappings[0].host_port < PORT_RANGE_END

    def test_range_is_wide(self):
        """The default range spans at least [15000, 45000)"""
        assert PORT_RANGE_START <= 15000
        assert PORT_RANGE_END >= 45000

    def test_duplicate_ports_collapse(self):
        """Declaring a port twice yields a single binding"""
        bindings = allocate_transient_ports([8080, 8080])
        assert list(bindings) == [8080]
        assert len(bindings[8080]) == 1

    def test_uses_shared_generator(self):
        """Host ports come from the module generator"""
        with patch.object(port_allocator._random, "randrange", return_value=23456) as mock_rand:
            bindings = allocate_transient_ports([80])

        mock_rand.assert_called_once_with(PORT_RANGE_START, PORT_RANGE_END)
        assert bindings[80][0].host_port == 23456

    def test_repeated_allocations_differ(self):
        """Repeated picks for the same port are very unlikely to all match"""
        picks = {random_host_port() for _ in range(20)}
        assert len(picks) > 1


class TestMappedPorts:
    """Test cases for caller-fixed port mappings"""

    def test_host_port_targets_container_port(self):
        """Host port H is bound exactly once, targeting container port C"""
        bindings = map_fixed_ports([MappedPort(host_port=9000, container_port=80)])

        assert list(bindings) == [80]
        assert len(bindings[80]) == 1
        assert bindings[80][0].host_port == 9000
        assert bindings[80][0].as_binding() == ("0.0.0.0", 9000)

    def test_combined_table(self):
        """Transient and mapped ports share one table keyed by container port"""
        with patch.object(port_allocator._random, "randrange", return_value=30000):
            bindings = build_port_bindings(
                [8080], [MappedPort(host_port=9000, container_port=80)]
            )

        assert bindings[8080][0].host_port == 30000
        assert bindings[80][0].host_port == 9000

        host_9000 = [
            (port, m) for port, ms in bindings.items() for m in ms if m.host_port == 9000
        ]
        assert len(host_9000) == 1
        assert host_9000[0][0] == 80


if __name__ == "__main__":
    pytest.main([__file__])
