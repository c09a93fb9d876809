"""Runtime engine exports."""

from .commands import RuntimeCommandDispatcher
from .loop import RuntimeBootstrap, RuntimeEngine
from .ui import RuntimeUIPublisher

__all__ = [
    "RuntimeBootstrap",
    "RuntimeCommandDispatcher",
    "RuntimeEngine",
    "RuntimeUIPublisher",
]
