"""Container lifecycle control through the container runtime CLI."""

from src.infrastructure.containers.lifecycle import (
    container_log_path,
    run_runtime_command,
    terminate_container,
)

__all__ = [
    "container_log_path",
    "run_runtime_command",
    "terminate_container",
]
