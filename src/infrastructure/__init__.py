"""Infrastructure layer: the harness's view of external collaborators.

- **database**: Readiness probing of a PostgreSQL dependency
- **containers**: Termination and log capture of runtime containers
"""
