"""
Engines: Script (RestrictedPython) evaluation of untrusted snippets.
"""

from coderunner.engines.script import ScriptExecutor, evaluate

__all__ = [
    "ScriptExecutor",
    "evaluate",
]
