"""Formatter protocol and registry for output formatting."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from pgbrowse.core.models import QueryResult

F = TypeVar("F", bound=type)


@runtime_checkable
class Formatter(Protocol):
    """Turns a QueryResult into output lines, without trailing newlines."""

    def format(self, result: QueryResult) -> Iterator[str]: ...


class FormatterRegistry:
    """Formatter classes by output format name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._formatters

    def register(self, name: str) -> Callable[[F], F]:
        def decorator(cls: F) -> F:
            self._formatters[name] = cls
            return cls

        return decorator

    def get(self, name: str, **options: object) -> Formatter:
        """Instantiate a formatter, passing only the options it accepts.

        Raises KeyError if the format name is not registered.
        """
        if name not in self._formatters:
            available = ", ".join(self.available)
            msg = f"Unknown format {name!r}. Available: {available}"
            raise KeyError(msg)
        cls = self._formatters[name]
        accepted = inspect.signature(cls).parameters
        return cls(**{k: v for k, v in options.items() if k in accepted})

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


registry = FormatterRegistry()
