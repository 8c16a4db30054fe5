"""Engine façade: turns script source into isolated or persistent runs.

A ``ScriptEngine`` owns the builtin table shared by all of its runs and the
host context they execute against. Every call to ``run`` builds a fresh
``Interpreter``; ``run_persistent`` keeps the interpreter alive after the
script body finishes so that its event handlers keep firing until the
session is stopped.

Hosts observe runs through three signals, available both as callbacks
(``on_output``, ``on_error``, ``on_complete``) and as events on the host
event bus (``script:output``, ``script:error``, ``script:complete``).
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .ast import Program
from .builtin_function import BuiltinFunction, BuiltinTable
from .context import HostContext
from .debug_log import DebugLog
from .errors import ScriptError, ScriptFatalError, ScriptHostError, ScriptParseError
from .interpreter import Interpreter, host_message
from .lexer import Token, tokenize
from .limits import SafetyLimits
from .parser import parse_tokens
from .std import standard_functions
from .types import UNDEFINED


@dataclass
class ErrorInfo:
    type: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    hint: str = ''

    @classmethod
    def from_error(cls, error: ScriptError) -> 'ErrorInfo':
        return cls(type(error).__name__, error.message, error.line, error.column, error.hint)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'message': self.message, 'line': self.line,
                'column': self.column, 'hint': self.hint}

    def __str__(self) -> str:
        text = self.message
        if self.line is not None:
            text = f"Line {self.line}, Column {self.column}: {text}"
        if self.hint:
            text += f"\nHint: {self.hint}"
        return text


@dataclass
class RunResult:
    success: bool
    result: Any = None
    error: Optional[ErrorInfo] = None
    variables: Dict[str, Any] = field(default_factory=dict)
    run_id: Optional[int] = None
    session_id: Optional[str] = None
    output: List[str] = field(default_factory=list)


@dataclass
class ParseResult:
    success: bool
    ast: Optional[Program] = None
    tokens: List[Token] = field(default_factory=list)
    error: Optional[ErrorInfo] = None


_UNSET = object()


class ScriptEngine:
    def __init__(self,
                 context: Optional[HostContext] = None,
                 limits: Optional[SafetyLimits] = None,
                 debug_level: int = 0,
                 debug_file: Optional[str] = None):
        self.context = context or HostContext()
        self.limits = limits or SafetyLimits()
        self.builtins = BuiltinTable(standard_functions())
        self.log = DebugLog(debug_level, debug_file)
        self._active: Dict[int, Interpreter] = {}
        self._sessions: Dict[str, Interpreter] = {}
        self._next_run_id = 0
        self._next_session_id = 0
        self._last_variables: Dict[str, Any] = {}
        self._output_listeners: List[Callable[[str], Any]] = []
        self._error_listeners: List[Callable[[ErrorInfo], Any]] = []
        self._complete_listeners: List[Callable[[RunResult], Any]] = []

    # Signals

    def on_output(self, callback: Callable[[str], Any]) -> Callable[[str], Any]:
        self._output_listeners.append(callback)
        return callback

    def on_error(self, callback: Callable[[ErrorInfo], Any]) -> Callable[[ErrorInfo], Any]:
        self._error_listeners.append(callback)
        return callback

    def on_complete(self, callback: Callable[[RunResult], Any]) -> Callable[[RunResult], Any]:
        self._complete_listeners.append(callback)
        return callback

    def _signal(self, event: str, payload: Dict[str, Any]):
        # host listeners run on their own; the script does not wait for them
        self.context.events.emit(event, payload)

    def _emit_output(self, run_id: int, text: str, callback: Optional[Callable[[str], Any]]):
        if callback is not None:
            callback(text)
        for listener in self._output_listeners:
            listener(text)
        self._signal('script:output', {'text': text, 'runId': run_id})

    def _emit_error(self, run_id: int, error: ScriptError, callback: Optional[Callable[[ErrorInfo], Any]]):
        info = ErrorInfo.from_error(error)
        self.log(f"[run {run_id}] {info.type}: {info}")
        if callback is not None:
            callback(info)
        for listener in self._error_listeners:
            listener(info)
        self._signal('script:error', {**info.to_dict(), 'runId': run_id})

    def _emit_complete(self, outcome: RunResult):
        for listener in self._complete_listeners:
            listener(outcome)
        payload = {'success': outcome.success, 'runId': outcome.run_id, 'sessionId': outcome.session_id}
        if outcome.error is not None:
            payload['error'] = outcome.error.to_dict()
        self._signal('script:complete', payload)

    # Operations

    @property
    def is_running(self) -> bool:
        return bool(self._active or self._sessions)

    @property
    def sessions(self) -> List[str]:
        return list(self._sessions)

    def define_function(self, name: str, fn: Callable[..., Any]):
        """Make a host callable available to every later run."""
        self.builtins.define(BuiltinFunction.wrap(name, fn))

    def parse(self, source: str) -> ParseResult:
        """Syntax-check `source` without running it."""
        tokens = tokenize(source)
        try:
            program = parse_tokens(tokens)
        except ScriptParseError as error:
            return ParseResult(False, None, tokens, ErrorInfo.from_error(error))
        return ParseResult(True, program, tokens)

    async def run(self, source: Union[str, Program], **options: Any) -> RunResult:
        """Run a script once; its handlers are removed when it finishes."""
        return await self._execute(source, False, **options)

    async def run_persistent(self, source: Union[str, Program], **options: Any) -> RunResult:
        """Run a script whose event handlers stay live until the session is stopped."""
        return await self._execute(source, True, **options)

    async def run_file(self, path: str, persistent: bool = False, **options: Any) -> RunResult:
        """Read a script through the host filesystem and run it."""
        try:
            filesystem = self.context.filesystem
            if filesystem is None:
                raise ScriptHostError("Filesystem not available")
            try:
                source = filesystem.read(path)
                if inspect.isawaitable(source):
                    source = await source
            except (OSError, LookupError, ValueError) as error:
                raise ScriptHostError(host_message(error), hint=f"Could not read script '{path}'") from error
        except ScriptHostError as error:
            self._emit_error(0, error, options.get('on_error'))
            outcome = RunResult(False, error=ErrorInfo.from_error(error))
            self._emit_complete(outcome)
            return outcome
        return await self._execute(source, persistent, **options)

    async def _execute(self,
                       source: Union[str, Program],
                       persistent: bool,
                       timeout: Any = _UNSET,
                       variables: Optional[Dict[str, Any]] = None,
                       functions: Optional[Dict[str, Callable[..., Any]]] = None,
                       on_output: Optional[Callable[[str], Any]] = None,
                       on_error: Optional[Callable[[ErrorInfo], Any]] = None) -> RunResult:
        self._next_run_id += 1
        run_id = self._next_run_id

        if isinstance(source, Program):
            program = source
        else:
            parsed = self.parse(source)
            if not parsed.success:
                self.log(f"[run {run_id}] parse failed: {parsed.error}")
                self._emit_error(run_id, ScriptParseError(parsed.error.message, parsed.error.line,
                                                          parsed.error.column, parsed.error.hint), on_error)
                outcome = RunResult(False, error=parsed.error, run_id=run_id)
                self._emit_complete(outcome)
                return outcome
            program = parsed.ast

        limits = self.limits if timeout is _UNSET else self.limits.replace(timeout=timeout)
        interpreter = Interpreter(
            context=self.context,
            builtins=self.builtins,
            limits=limits,
            run_id=run_id,
            log=self.log,
            on_output=lambda text: self._emit_output(run_id, text, on_output),
        )
        interpreter.on_error = lambda error: self._handler_error(interpreter, error, on_error)
        for name, fn in (functions or {}).items():
            interpreter.define_local(BuiltinFunction.wrap(name, fn))
        for name, value in (variables or {}).items():
            interpreter.globals.define(name, value)
        if persistent:
            self._next_session_id += 1
            interpreter.session_id = f"persistent_{self._next_session_id}"

        self._active[run_id] = interpreter
        kept = False
        try:
            result = await interpreter.run(program)
        except ScriptError as error:
            self._emit_error(run_id, error, on_error)
            outcome = RunResult(False, error=ErrorInfo.from_error(error),
                                variables=interpreter.get_variables(), run_id=run_id,
                                session_id=interpreter.session_id, output=list(interpreter.output))
            interpreter.stop(error if isinstance(error, ScriptFatalError) else None)
        except BaseException:
            interpreter.stop()
            raise
        else:
            outcome = RunResult(True, result=None if result is UNDEFINED else result,
                                variables=interpreter.get_variables(), run_id=run_id,
                                session_id=interpreter.session_id, output=list(interpreter.output))
            if persistent:
                self._sessions[interpreter.session_id] = interpreter
                kept = True
        finally:
            self._active.pop(run_id, None)
            # handlers of a finished run must not outlive it
            if not kept:
                interpreter.dispose()

        self._last_variables = outcome.variables
        self._emit_complete(outcome)
        return outcome

    def _handler_error(self, interpreter: Interpreter, error: ScriptError, callback):
        self._emit_error(interpreter.run_id, error, callback)
        if isinstance(error, ScriptFatalError) and interpreter.session_id in self._sessions:
            # the session cannot continue after a fatal handler error
            del self._sessions[interpreter.session_id]
            interpreter.dispose()

    def stop(self, id: Union[int, str, None] = None) -> bool:
        """Stop a run by id, a persistent session by session id, or everything."""
        if id is None:
            self.stop_all()
            return True
        if isinstance(id, str):
            session = self._sessions.pop(id, None)
            if session is not None:
                session.stop()
                session.dispose()
                return True
            for interpreter in list(self._active.values()):
                if interpreter.session_id == id:
                    interpreter.stop()
                    return True
            return False
        interpreter = self._active.get(id)
        if interpreter is None:
            return False
        interpreter.stop()
        return True

    def stop_all(self):
        for interpreter in list(self._active.values()):
            interpreter.stop()
        for session_id in list(self._sessions):
            session = self._sessions.pop(session_id)
            session.stop()
            session.dispose()

    def get_variables(self, id: Union[int, str, None] = None) -> Dict[str, Any]:
        """Bindings of a live run or session, or of the most recently finished run."""
        if id is None:
            return dict(self._last_variables)
        if isinstance(id, str):
            interpreter = self._sessions.get(id)
        else:
            interpreter = self._active.get(id)
        if interpreter is None:
            return {}
        return interpreter.get_variables()

    def close(self):
        self.stop_all()
        self.log.close()


def run_program(source: str,
                context: Optional[HostContext] = None,
                limits: Optional[SafetyLimits] = None,
                debug_level: int = 0,
                **options: Any) -> RunResult:
    """Synchronously run `source` on a fresh engine."""
    engine = ScriptEngine(context=context, limits=limits, debug_level=debug_level)
    try:
        return asyncio.run(engine.run(source, **options))
    finally:
        engine.close()
