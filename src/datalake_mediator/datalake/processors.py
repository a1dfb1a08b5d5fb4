"""
File processor plugins.

A processor is any object with two capabilities:
- ``can_process(file, mime_type) -> bool`` decides whether it wants a file
  (plain function or coroutine)
- ``process(context)`` handles the staged file (plain function or coroutine)

Processors are kept in registration order and invoked in that order.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable


@dataclass
class ProcessorContext:
    """Context passed to file processors for one notification."""

    bucket: str
    file: str
    buffer: bytes
    mime_type: str
    metadata: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class FileProcessor(Protocol):
    """Interface for file processors that handle bucket notifications."""

    def can_process(self, file: str, mime_type: str) -> Union[bool, Awaitable[bool]]:
        """Return True if this processor can handle the file."""
        ...

    def process(self, context: ProcessorContext) -> Union[None, Awaitable[None]]:
        """Process the file."""
        ...


class FunctionProcessor:
    """Processor built from a predicate and an action callable.

    Example:
        FunctionProcessor(
            can_process=lambda file, mime: file.endswith(".json"),
            process=handle_json,
        )
    """

    def __init__(
        self,
        can_process: Callable[[str, str], Any],
        process: Callable[[ProcessorContext], Any],
        name: Optional[str] = None,
    ):
        self._can_process = can_process
        self._process = process
        self.name = name or getattr(process, "__name__", type(self).__name__)

    def can_process(self, file: str, mime_type: str) -> Union[bool, Awaitable[bool]]:
        result = self._can_process(file, mime_type)
        if inspect.isawaitable(result):
            return result
        return bool(result)

    async def process(self, context: ProcessorContext) -> None:
        result = self._process(context)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"FunctionProcessor({self.name})"


def processor_name(processor: Any) -> str:
    """Human-readable identity of a processor for logs."""
    name = getattr(processor, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(processor).__name__


class ProcessorRegistry:
    """Ordered, append-only collection of file processors."""

    def __init__(self):
        self._processors: List[FileProcessor] = []

    def register(self, processor: FileProcessor) -> None:
        """Append a processor; it runs after every processor registered before it."""
        self._processors.append(processor)

    def list_all(self) -> List[FileProcessor]:
        """Snapshot of the registered processors."""
        return list(self._processors)

    def __len__(self) -> int:
        return len(self._processors)
