"""Formatter protocol and registry.

Formatters consume a result stream: the column list plus an iterable of raw
rows (field text as the service returned it, None for NULL). They yield
newline-terminated output lines as rows arrive, so a large result is never
held in memory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from athena_sql.core.models import ColumnInfo, Row

    FormatterFactory = Callable[[FormatOptions], Formatter]


class FormatOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: bool = True
    compact: bool = False


@runtime_checkable
class Formatter(Protocol):
    def format(
        self, columns: Sequence[ColumnInfo], rows: Iterable[Row]
    ) -> Iterator[str]:
        """Yield output lines, each ending in a newline."""
        ...


class FormatterRegistry:
    """Formatter classes by output format name."""

    def __init__(self) -> None:
        self._formatters: dict[str, FormatterFactory] = {}

    def register(self, name: str) -> Callable[[FormatterFactory], FormatterFactory]:
        def decorator(factory: FormatterFactory) -> FormatterFactory:
            self._formatters[name] = factory
            return factory

        return decorator

    def create(self, name: str, options: FormatOptions | None = None) -> Formatter:
        """Instantiate the formatter registered as name.

        Raises KeyError if the format name is not registered.
        """
        try:
            factory = self._formatters[name]
        except KeyError:
            msg = f"Unknown format {name!r}. Available: {', '.join(self.available)}"
            raise KeyError(msg) from None
        return factory(options or FormatOptions())

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


registry = FormatterRegistry()
