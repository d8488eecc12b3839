"""
Script engine (Python snippets, RestrictedPython).

Exports: ScriptExecutor, evaluate, compile_snippet, build_restricted_globals.
"""

from .executor import ScriptExecutor, ScriptTimeoutError, evaluate
from .sandbox import CAPABILITIES, DENIED_NAMES, build_restricted_globals, compile_snippet

__all__ = [
    "CAPABILITIES",
    "DENIED_NAMES",
    "ScriptExecutor",
    "ScriptTimeoutError",
    "evaluate",
    "compile_snippet",
    "build_restricted_globals",
]
