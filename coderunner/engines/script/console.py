"""
Console module for snippets: log, info, warn, error, plus the print() hook.

Nothing here touches a real stream; every call lands in an in-memory channel
that the executor joins into the result.
"""

from types import SimpleNamespace
from typing import Any


class OutputChannel:
    """Line collector. Partial lines written by print(end="") are kept pending."""

    __slots__ = ("_lines", "_pending")

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._pending = ""

    def write(self, text: str) -> None:
        parts = (self._pending + text).split("\n")
        self._pending = parts.pop()
        self._lines.extend(parts)

    def line(self, text: str) -> None:
        self.write(text + "\n")

    def lines(self) -> list[str]:
        if self._pending:
            return [*self._lines, self._pending]
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self.lines())


def _format(args: tuple[Any, ...]) -> str:
    return " ".join(str(a) for a in args)


def make_console_module(output: OutputChannel, errors: OutputChannel) -> Any:
    """Build the `console` object: log, info, warn, error."""

    def log(*args: Any) -> None:
        output.line(_format(args))

    def info(*args: Any) -> None:
        output.line("[INFO] " + _format(args))

    def warn(*args: Any) -> None:
        output.line("[WARN] " + _format(args))

    def error(*args: Any) -> None:
        errors.line(_format(args))

    return SimpleNamespace(log=log, info=info, warn=warn, error=error)


def make_print_hook(output: OutputChannel) -> Any:
    """
    Factory for RestrictedPython's `_print_` global. The rewritten bytecode
    calls `_print_(_getattr_)` once per frame and then `_call_print(...)` for
    every print().
    """

    class _PrintCollector:
        def __init__(self, _getattr_: Any = None) -> None:
            self._getattr_ = _getattr_

        def write(self, text: str) -> None:
            output.write(text)

        def __call__(self) -> str:
            return output.text()

        def _call_print(self, *objects: Any, **kwargs: Any) -> None:
            sep = kwargs.get("sep")
            end = kwargs.get("end")
            text = (" " if sep is None else str(sep)).join(str(o) for o in objects)
            output.write(text + ("\n" if end is None else str(end)))

    return _PrintCollector
