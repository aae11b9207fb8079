"""Core package for shared harness functionality.

- **config**: Centralized configuration management with environment support
- **constants**: Fixed timeouts, hosts and file modes
- **exceptions**: Structured exception hierarchy with error codes
- **logging**: Structured logging with Loguru
- **types**: Type aliases for better code clarity
"""
