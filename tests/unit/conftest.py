"""Shared fixtures for unit tests."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from pytest_mock import MockerFixture, MockType

from src.core.config import ContainerConfig, ReadinessConfig, Settings, get_settings


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide a real Settings object built from test environment values.

    Returns:
        Settings: Settings with short timeouts suitable for unit tests.
    """
    monkeypatch.setenv("APP_NAME", "TestHarness")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DEBUG", "false")

    return Settings(
        container_config=ContainerConfig(runtime_binary="docker"),
        readiness_config=ReadinessConfig(ping_timeout_seconds=0.2),
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear the settings cache before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[pytest.MonkeyPatch]:
    """Backup and restore environment variables to prevent test interference.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    original_env = os.environ.copy()

    env_prefixes = [
        "APP_",
        "ENVIRONMENT",
        "DEBUG",
        "CI",
        "LOG_CONFIG__",
        "CONTAINER_CONFIG__",
        "READINESS_CONFIG__",
    ]
    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield monkeypatch

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def make_process(mocker: MockerFixture) -> Callable[..., MockType]:
    """Build fake ``asyncio.subprocess.Process`` objects.

    Returns:
        Callable[..., MockType]: Factory taking the combined output and the
            exit status the fake process reports.
    """

    def factory(output: bytes = b"", returncode: int = 0) -> MockType:
        process = mocker.Mock()
        process.communicate = mocker.AsyncMock(return_value=(output, None))
        process.wait = mocker.AsyncMock(return_value=returncode)
        process.kill = mocker.Mock()
        process.returncode = returncode
        return process

    return factory


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """An absolute, existing directory for captured container logs."""
    directory = tmp_path / "container-logs"
    directory.mkdir()
    return directory
