import structlog
from typing import Any, Dict, Iterable, Optional
from prometheus_client import Counter, Histogram

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger("docker_creator")

# Prometheus metrics
CONTAINER_OPERATIONS = Counter(
    "container_operations_total", "Container operations", ["operation", "status"]
)
PROVISION_LATENCY = Histogram(
    "container_provision_seconds", "Time to provision a ready container"
)


def log_container_operation(
    operation: str, container_id: str, status: str, details: Dict[str, Any] = None
):
    """Log container operations with structured logging"""
    logger.info(
        "Container operation",
        operation=operation,
        container_id=container_id,
        status=status,
        details=details or {},
    )
    CONTAINER_OPERATIONS.labels(operation=operation, status=status).inc()


# Error handling utilities
class DockerCreatorException(Exception):
    """Base exception for container provisioning"""

    def __init__(self, message: str, error_code: str = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class EngineConnectionError(DockerCreatorException, ConnectionError):
    """No engine client could be built from any connection candidate"""

    def __init__(self, message: str, failures: Optional[Iterable[Any]] = None):
        super().__init__(message, "ENGINE_CONNECTION")
        self.failures = list(failures or [])


class EngineRequestError(DockerCreatorException):
    """An engine API call failed while provisioning"""

    def __init__(self, message: str, operation: str = None):
        super().__init__(message, "ENGINE_REQUEST")
        self.operation = operation


class PortResolutionError(DockerCreatorException):
    """The engine did not report a host binding for a declared port"""

    def __init__(self, message: str, container_port: int = None):
        super().__init__(message, "PORT_RESOLUTION")
        self.container_port = container_port


class ReadinessTimeoutError(DockerCreatorException, TimeoutError):
    """The awaited log line did not show up within the configured timeout"""

    def __init__(self, message: str):
        super().__init__(message, "READINESS_TIMEOUT")


class ReadinessInterruptedError(DockerCreatorException, InterruptedError):
    """The readiness wait was interrupted by another thread"""

    def __init__(self, message: str = "Readiness wait interrupted"):
        super().__init__(message, "READINESS_INTERRUPTED")


class ContainerExitedError(DockerCreatorException):
    """The container stopped before printing the awaited log line"""

    def __init__(self, message: str, exit_code: int = None):
        super().__init__(message, "CONTAINER_EXITED")
        self.exit_code = exit_code
