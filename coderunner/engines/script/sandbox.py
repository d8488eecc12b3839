"""
RestrictedPython sandbox for snippet evaluation.

The capability table below is the only source of names a snippet can see.
Anything not listed is undefined inside the snippet, so `open`, `__import__`,
`eval`, `exec`, timers, process and filesystem handles fail with NameError
(or ImportError for `import` statements).

Allowed: value constructors (bool, int, float, str, list, dict, set, ...),
iteration/aggregation helpers (len, range, enumerate, zip, sorted, min, max,
sum, ...), common exception classes, `math`, `json.loads/dumps`, a small
`random` surface, `datetime/date/timedelta/timezone`, and the `console`
object injected per call.
"""

import ast
import builtins
import json
import math
import operator
import random
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from types import CodeType, MappingProxyType, SimpleNamespace
from typing import Any

from RestrictedPython import compile_restricted_eval, compile_restricted_exec
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

SNIPPET_FILENAME = "<snippet>"

_BUILTIN_NAMES = (
    "__build_class__",
    # values and constructors
    "bool", "int", "float", "complex", "str", "list", "tuple", "dict", "set",
    "frozenset", "range", "slice",
    # utilities
    "abs", "all", "any", "bin", "callable", "chr", "divmod", "enumerate",
    "filter", "hash", "hex", "isinstance", "issubclass", "iter", "len", "map",
    "max", "min", "next", "oct", "ord", "pow", "repr", "reversed", "round",
    "sorted", "sum", "zip",
    # exceptions a snippet may raise or catch
    "Exception", "ArithmeticError", "AssertionError", "AttributeError",
    "IndexError", "KeyError", "LookupError", "NameError", "NotImplementedError",
    "OverflowError", "RuntimeError", "StopIteration", "TypeError", "ValueError",
    "ZeroDivisionError",
)

# `json` and `random` are exposed as narrow namespaces: the real modules carry
# references to other modules (json.codecs can open files).
CAPABILITIES: Mapping[str, Any] = MappingProxyType(
    {
        **{name: getattr(builtins, name) for name in _BUILTIN_NAMES},
        "None": None,
        "True": True,
        "False": False,
        "math": math,
        "json": SimpleNamespace(loads=json.loads, dumps=json.dumps),
        "random": SimpleNamespace(
            random=random.random,
            randint=random.randint,
            uniform=random.uniform,
            choice=random.choice,
            shuffle=random.shuffle,
            sample=random.sample,
        ),
        "datetime": datetime,
        "date": date,
        "timedelta": timedelta,
        "timezone": timezone,
    }
)

DENIED_NAMES = frozenset(
    {
        # code loading and evaluation
        "__import__", "compile", "eval", "exec", "importlib",
        # introspection that reaches outside the snippet
        "globals", "locals", "vars", "dir", "getattr", "setattr", "delattr",
        "type", "object", "super", "breakpoint", "help",
        # filesystem, process and interpreter handles
        "open", "input", "exit", "quit", "os", "sys", "subprocess", "shutil",
        "pathlib", "io", "socket", "signal",
        # timers and scheduling
        "time", "sched", "threading", "asyncio",
        # raw buffers
        "bytearray", "memoryview",
    }
)

_INPLACE_OPS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
    "@=": operator.imatmul,
}


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    return _INPLACE_OPS[op](target, value)


def _apply(func: Any, *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


@dataclass(frozen=True)
class CompiledSnippet:
    """Statements to exec, plus the trailing expression (if any) to eval."""

    body: CodeType
    expression: CodeType | None = None


def _raise_compile_errors(errors: tuple[str, ...] | list[str]) -> None:
    raise SyntaxError("; ".join(errors))


def _compile_exec(source: str | ast.Module, filename: str) -> CodeType:
    compiled = compile_restricted_exec(source, filename)
    if compiled.errors or compiled.code is None:
        _raise_compile_errors(compiled.errors or ["compile failed"])
    return compiled.code


def compile_snippet(snippet: str, filename: str = SNIPPET_FILENAME) -> CompiledSnippet:
    """
    Compile a snippet with RestrictedPython. Raises SyntaxError on failure,
    including names/attributes RestrictedPython rejects (leading underscore).

    When the last top-level statement is an expression it is split off and
    compiled in eval mode so its value can be reported.
    """
    try:
        tree = ast.parse(snippet, filename, "exec")
    except SyntaxError:
        # Let RestrictedPython format the message.
        _compile_exec(snippet, filename)
        raise
    if not tree.body or not isinstance(tree.body[-1], ast.Expr):
        return CompiledSnippet(body=_compile_exec(tree, filename))

    last = tree.body.pop()
    body = _compile_exec(tree, filename)
    expression = ast.Expression(body=last.value)
    compiled = compile_restricted_eval(expression, filename)
    if compiled.errors or compiled.code is None:
        _raise_compile_errors(compiled.errors or ["compile failed"])
    return CompiledSnippet(body=body, expression=compiled.code)


def _make_guard_globals() -> dict[str, Any]:
    """Hooks called by RestrictedPython's rewritten bytecode."""
    return {
        "_getattr_": safer_getattr,
        "_getiter_": default_guarded_getiter,
        "_getitem_": default_guarded_getitem,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
        "_inplacevar_": _inplacevar,
        "_apply_": _apply,
        "__metaclass__": type,
    }


def build_restricted_globals(
    context_dict: dict[str, Any],
    *,
    capabilities: Mapping[str, Any] = CAPABILITIES,
) -> dict[str, Any]:
    """
    Build a fresh globals dict for one evaluation: the capability table as
    builtins, the guard hooks, and per-call context (console, print hook).
    """
    overlap = DENIED_NAMES.intersection(capabilities)
    if overlap:
        raise ValueError(f"Denied names in capability table: {sorted(overlap)}")
    g: dict[str, Any] = {
        "__builtins__": dict(capabilities),
        "__name__": "snippet",
    }
    g.update(_make_guard_globals())
    g.update(context_dict)
    print_hook = g.get("_print_")
    if print_hook is not None:
        # eval-mode code has no injected `_print = _print_(_getattr_)` line
        g["_print"] = print_hook(safer_getattr)
    return g
