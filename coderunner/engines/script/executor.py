"""
ScriptExecutor: evaluate(snippet) -> ExecutionResult.

Compiles with RestrictedPython, runs in a fresh restricted scope, and never
raises: compile errors, runtime exceptions and deadline overruns all end up in
the result's `error` field.

Each evaluation runs in its own child process. Inside the child the deadline
(SCRIPT_EXEC_TIMEOUT_MS) is a repeating ITIMER_REAL/SIGALRM (a sys.settrace
line hook where SIGALRM is unavailable), which keeps the output captured so
far. The parent waits for the deadline plus a short grace period and kills
the child if nothing came back, which covers snippets that swallow the
timeout exception or spin inside a single C call.
"""

import logging
import multiprocessing
import signal
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from multiprocessing.connection import Connection
from typing import Any, TypeVar

from coderunner.core.config import settings
from coderunner.schemas import ExecutionResult

from .console import OutputChannel, make_console_module, make_print_hook
from .sandbox import CompiledSnippet, build_restricted_globals, compile_snippet

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Re-fire interval once the deadline has passed, in case the first signal lands
# inside a handler the snippet controls.
_ALARM_REFIRE_SECONDS = 0.05

# How long past the deadline the parent waits before killing the child.
_KILL_GRACE_SECONDS = 0.2

_mp = multiprocessing.get_context(
    "fork" if "fork" in multiprocessing.get_all_start_methods() else "spawn"
)


class ScriptTimeoutError(BaseException):
    """
    Raised inside the snippet when the deadline elapses. Not an Exception
    subclass, so `except Exception` in a snippet does not catch it.
    """

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(timeout_message(timeout_ms))


def timeout_message(timeout_ms: int) -> str:
    return f"Execution timed out (limit: {timeout_ms}ms)"


@dataclass(frozen=True)
class Success:
    value: str | None


@dataclass(frozen=True)
class Failure:
    message: str
    timed_out: bool = False


Outcome = Success | Failure


def _run_with_alarm(fn: Callable[[], T], timeout_ms: int) -> T:
    """Run fn() under ITIMER_REAL. Main thread only."""

    def _handler(signum: int, frame: Any) -> None:
        raise ScriptTimeoutError(timeout_ms)

    old = signal.signal(signal.SIGALRM, _handler)
    try:
        signal.setitimer(signal.ITIMER_REAL, timeout_ms / 1000, _ALARM_REFIRE_SECONDS)
        try:
            return fn()
        finally:
            signal.setitimer(signal.ITIMER_REAL, 0)
    finally:
        signal.signal(signal.SIGALRM, old)


def _run_with_trace(fn: Callable[[], T], timeout_ms: int) -> T:
    """Run fn() with a line tracer that raises once the deadline has passed."""
    deadline = time.monotonic() + timeout_ms / 1000

    def _tracer(frame: Any, event: str, arg: Any) -> Any:
        if time.monotonic() >= deadline:
            raise ScriptTimeoutError(timeout_ms)
        return _tracer

    previous = sys.gettrace()
    sys.settrace(_tracer)
    try:
        return fn()
    finally:
        sys.settrace(previous)


def run_with_deadline(fn: Callable[[], T], timeout_ms: int) -> T:
    """Run fn(), raising ScriptTimeoutError if it runs past timeout_ms."""
    if hasattr(signal, "SIGALRM") and threading.current_thread() is threading.main_thread():
        return _run_with_alarm(fn, timeout_ms)
    return _run_with_trace(fn, timeout_ms)


def _render(value: Any) -> str | None:
    return None if value is None else str(value)


def _exec_compiled(compiled: CompiledSnippet, g: dict[str, Any]) -> str | None:
    exec(compiled.body, g)
    if compiled.expression is None:
        return None
    return _render(eval(compiled.expression, g))


def _evaluate_in_scope(snippet: str, timeout_ms: int) -> tuple[list[str], list[str], Outcome]:
    """Compile and run one snippet in this process. Returns (output, errors, outcome)."""
    output = OutputChannel()
    errors = OutputChannel()
    context = {
        "console": make_console_module(output, errors),
        "_print_": make_print_hook(output),
    }

    try:
        compiled = compile_snippet(snippet)
    except SyntaxError as e:
        # compile_snippet already formats "Line N: ..." messages
        return [], [], Failure(str(e))
    except (ValueError, RecursionError) as e:
        # null bytes, nesting too deep for the parser
        return [], [], Failure(f"{type(e).__name__}: {e}")
    g = build_restricted_globals(context)

    try:
        value = run_with_deadline(lambda: _exec_compiled(compiled, g), timeout_ms)
    except ScriptTimeoutError as e:
        logger.info("Snippet exceeded %sms deadline", e.timeout_ms)
        outcome: Outcome = Failure(timeout_message(e.timeout_ms), timed_out=True)
    except Exception as e:
        outcome = Failure(f"{type(e).__name__}: {e}")
    else:
        outcome = Success(value)
    return output.lines(), errors.lines(), outcome


def _child_main(conn: Connection, snippet: str, timeout_ms: int) -> None:
    # A forked child inherits the server's signal wakeup fd.
    signal.set_wakeup_fd(-1)
    try:
        conn.send(_evaluate_in_scope(snippet, timeout_ms))
    finally:
        conn.close()


def run_isolated(snippet: str, timeout_ms: int) -> tuple[list[str], list[str], Outcome]:
    """
    Evaluate in a child process and kill it if no result arrives within
    timeout_ms plus a grace period. Output from a killed child is lost.
    """
    reader, writer = _mp.Pipe(duplex=False)
    proc = _mp.Process(target=_child_main, args=(writer, snippet, timeout_ms), daemon=True)
    proc.start()
    writer.close()
    try:
        if not reader.poll(timeout_ms / 1000 + _KILL_GRACE_SECONDS):
            logger.warning(
                "Snippet ignored its %sms deadline, killing pid %s", timeout_ms, proc.pid
            )
            return [], [], Failure(timeout_message(timeout_ms), timed_out=True)
        try:
            return reader.recv()
        except EOFError:
            proc.join(_KILL_GRACE_SECONDS)
            logger.warning("Evaluation process exited with code %s", proc.exitcode)
            return [], [], Failure(f"Execution aborted (exit code {proc.exitcode})")
    finally:
        reader.close()
        if proc.is_alive():
            proc.kill()
        proc.join()


class ScriptExecutor:
    """
    Evaluate one snippet per call in a fresh RestrictedPython scope inside a
    fresh process. No state is shared between calls.
    """

    def __init__(self, timeout_ms: int | None = None) -> None:
        self.timeout_ms = timeout_ms or settings.SCRIPT_EXEC_TIMEOUT_MS

    def evaluate(self, snippet: str) -> ExecutionResult:
        start = time.perf_counter()
        output, errors, outcome = run_isolated(snippet, self.timeout_ms)
        elapsed_ms = (time.perf_counter() - start) * 1000

        return ExecutionResult(
            output="\n".join(output),
            errors="\n".join(errors) if errors else None,
            result=outcome.value if isinstance(outcome, Success) else None,
            error=outcome.message if isinstance(outcome, Failure) else None,
            execution_time_ms=round(elapsed_ms, 2),
        )


def evaluate(snippet: str, *, timeout_ms: int | None = None) -> ExecutionResult:
    """Evaluate one snippet with a fresh executor. Never raises."""
    return ScriptExecutor(timeout_ms=timeout_ms).evaluate(snippet)
