"""
Script runtime: global environment, native functions and event registry.

A Runtime is an explicit handle created by init_runtime(). Each runtime
owns one global environment that every event trigger executes against,
so state written by one trigger is visible to the next one. Several
runtimes can live side by side in the same process.

Events are parsed programs stored under a name. Triggering an event runs
its statements top to bottom; the first error aborts that trigger and is
reported in the returned EvaluationResult, but the runtime stays usable.

Note that `var` and `let` always rebind in the current frame, so a
`var` at the top of an event program resets its variable on every
trigger. Use assignment (`x = x + 1`) to keep state across triggers.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .ast import Program
from .config import RuntimeConfig
from .environment import Environment
from .evaluator import EvaluationContext, EvaluationResult, Evaluator, execute
from .limits import ScriptLimits
from .natives import native_function
from .parser import parse
from .values import NativeCallable, NativeFunction, Value, is_value

logger = logging.getLogger("storie.dsl.runtime")


class Runtime:
    """Holds the global environment and the event registry."""

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self._config = config or RuntimeConfig()
        self._limits = self._config.resolved_limits()
        self._globals = Environment()
        self._events: Dict[str, Program] = {}

        for name, value in self._config.initial_globals.items():
            self.set_global(name, value)

    @property
    def globals(self) -> Environment:
        """The global environment shared by every trigger."""
        return self._globals

    @property
    def limits(self) -> ScriptLimits:
        return self._limits

    @property
    def event_names(self) -> List[str]:
        """Registered event names, in registration order."""
        return list(self._events)

    # ============================================================
    # Natives and Globals
    # ============================================================

    def register_native(self, name: str, fn: NativeCallable) -> None:
        """
        Exposes a host callable to scripts under a case-sensitive name.

        The callable receives the caller's environment and the list of
        evaluated arguments, and returns one script value.
        """
        self._globals.define(name, NativeFunction(name=name, fn=fn))
        logger.debug("native_registered", extra={"native_name": name})

    def register_function(self, fn: Callable[..., Any], name: Optional[str] = None) -> None:
        """Exposes an annotated Python callable; see natives.native_function."""
        native = native_function(fn, name)
        self._globals.define(native.name, native)
        logger.debug("native_registered", extra={"native_name": native.name})

    def set_global(self, name: str, value: Value) -> None:
        """Binds a value in the global environment."""
        if not is_value(value):
            raise TypeError(f"Unsupported global value for '{name}': {type(value).__name__}")
        self._globals.define(name, value)

    def set_global_int(self, name: str, value: int) -> None:
        self.set_global(name, int(value))

    def set_global_float(self, name: str, value: float) -> None:
        self.set_global(name, float(value))

    def set_global_bool(self, name: str, value: bool) -> None:
        self.set_global(name, bool(value))

    def set_global_string(self, name: str, value: str) -> None:
        self.set_global(name, str(value))

    def get_global(self, name: str, default: Value = None) -> Value:
        """Returns a global value, or `default` when it is not bound."""
        if name not in self._globals:
            return default
        return self._globals.get(name)

    # ============================================================
    # Events
    # ============================================================

    def register_event(self, name: str, program: Program) -> None:
        """Stores a program under an event name, replacing any previous one."""
        replaced = name in self._events
        self._events[name] = program
        logger.debug(
            "event_registered",
            extra={
                "event_name": name,
                "statement_count": len(program),
                "replaced": replaced,
            },
        )

    def load_event(self, name: str, source: str) -> Program:
        """
        Parses source and registers it as an event.

        Raises:
            TokenizerError: If tokenization fails
            ParseError: If parsing fails
            LimitExceededError: If the source exceeds a limit
        """
        program = parse(source, self._limits)
        self.register_event(name, program)
        return program

    def unregister_event(self, name: str) -> bool:
        """Removes an event; returns whether it was registered."""
        return self._events.pop(name, None) is not None

    def has_event(self, name: str) -> bool:
        return name in self._events

    def get_event(self, name: str) -> Optional[Program]:
        return self._events.get(name)

    def trigger_event(self, name: str) -> EvaluationResult:
        """
        Executes a registered event against the global environment.

        Unregistered names are a successful no-op. Any return value is
        discarded.
        """
        program = self._events.get(name)
        if program is None:
            logger.debug("event_not_registered", extra={"event_name": name})
            return EvaluationResult(value=None, success=True)

        logger.debug("event_triggered", extra={"event_name": name})
        result = execute(program, self._context(program))

        if not result.success and self._config.log_errors:
            logger.error(
                "event_failed",
                extra={"event_name": name, "error": result.error},
            )

        return EvaluationResult(
            value=None,
            success=result.success,
            error=result.error,
            exception=result.exception,
        )

    def execute(self, program: Program) -> Value:
        """
        Executes a program against the global environment.

        Unlike trigger_event, errors propagate to the caller.

        Returns:
            The value of a top-level `return`, or None
        """
        return Evaluator(self._context(program)).execute(program)

    def run(self, source: str) -> Value:
        """Parses and executes source once against the global environment."""
        return self.execute(parse(source, self._limits))

    def _context(self, program: Program) -> EvaluationContext:
        return EvaluationContext(
            environment=self._globals,
            limits=self._limits,
            source=program.source,
        )


def init_runtime(config: Optional[RuntimeConfig] = None) -> Runtime:
    """Creates a new, independent runtime."""
    return Runtime(config)
