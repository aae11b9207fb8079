"""pytest integration for the acceptance harness.

- **scope**: Scoped cleanup registry released at the end of a test
- **validation**: Startup checks on harness configuration
- **plugin**: pytest hooks and fixtures wiring the harness into a test suite
"""
