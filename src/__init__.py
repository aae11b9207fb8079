"""Acceptance harness for tests that depend on a containerized PostgreSQL.

The harness provides the primitives an acceptance suite needs around an
externally managed database container:

- **Readiness probing**: build a connection pool and prove it live within a
  bounded time, releasing it automatically when the test ends
- **Container termination**: stop or kill a container, optionally capturing
  its logs to a file first for post-mortem inspection
- **Startup validation**: abort the run early on unusable configuration

Everything is exposed to pytest through ``src.testing.plugin``.
"""
