"""
Configuration Module

Environment-driven settings for engine discovery, port allocation and the
readiness wait. Values may come from the process environment or a .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Environment variable that points the docker SDK at a non-default engine
DOCKER_HOST_ENV = "DOCKER_HOST"

# Remote engine used when no local engine is reachable (docker-machine default)
DOCKER_MACHINE_SERVICE_URL = os.getenv("DOCKER_MACHINE_URL", "tcp://192.168.99.100:2376")

# Conventional per-user certificate directory for docker-machine hosts
DOCKER_CERT_PATH = os.getenv(
    "DOCKER_CREATOR_CERT_PATH", str(Path.home() / ".docker" / "machine" / "certs")
)

# Host ports for transient container ports are drawn from [start, end)
PORT_RANGE_START = int(os.getenv("DOCKER_CREATOR_PORT_RANGE_START", 15000))
PORT_RANGE_END = int(os.getenv("DOCKER_CREATOR_PORT_RANGE_END", 45000))

BIND_ADDRESS = "0.0.0.0"

# Seconds to sleep when the log stream has nothing new
LOG_POLL_INTERVAL = float(os.getenv("DOCKER_CREATOR_LOG_POLL_INTERVAL", 0.01))
