# RetroScript language package
# This package provides the tokenizer, parser and interpreter for RetroScript,
# plus an engine façade for embedding it in a host application.
from .context import CommandBus, EventBus, HostContext, MemoryFileSystem, WindowManager
from .engine import ErrorInfo, ParseResult, RunResult, ScriptEngine, run_program
from .errors import (
    ScriptError, ScriptParseError, ScriptRuntimeError, ScriptTypeError,
    ScriptReferenceError, ScriptHostError, ScriptFatalError, ScriptIterationError,
    ScriptRecursionError, ScriptTimeoutError, ScriptHandlerLimitError, ScriptStoppedError,
)
from .interpreter import Interpreter
from .limits import SafetyLimits
from .parser import parse_program

__all__ = [
    'ScriptEngine',
    'run_program',
    'parse_program',
    'Interpreter',
    'SafetyLimits',
    'HostContext',
    'EventBus',
    'MemoryFileSystem',
    'CommandBus',
    'WindowManager',
    'RunResult',
    'ParseResult',
    'ErrorInfo',
    'ScriptError',
    'ScriptParseError',
    'ScriptRuntimeError',
    'ScriptTypeError',
    'ScriptReferenceError',
    'ScriptHostError',
    'ScriptFatalError',
    'ScriptIterationError',
    'ScriptRecursionError',
    'ScriptTimeoutError',
    'ScriptHandlerLimitError',
    'ScriptStoppedError',
]
