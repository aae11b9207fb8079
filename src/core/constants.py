"""Core harness constants."""

# Readiness probing
LOOPBACK_HOST = "127.0.0.1"
PING_TIMEOUT_SECONDS = 1.0
POOL_DRIVERNAME = "postgresql+asyncpg"
MAX_TCP_PORT = 65535

# Container lifecycle
RUNTIME_BINARY = "docker"
STOP_GRACE_PERIOD_SECONDS = 30
LOG_FILE_SUFFIX = ".log"
LOG_FILE_MODE = 0o644  # rw-r--r--
