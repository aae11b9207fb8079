"""Type aliases shared across the harness.

These aliases give names to the loosely typed values that flow between the
prober, the lifecycle controller and the pytest plugin.
"""

from collections.abc import Awaitable, Callable

# Absolute loop-clock time (``asyncio.get_running_loop().time()``)
type LoopDeadline = float

# A cleanup action registered with a scope; may be sync or async
type CleanupCallback = Callable[[], Awaitable[object] | object]
