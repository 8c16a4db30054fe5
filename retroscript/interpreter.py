"""Tree-walking interpreter for RetroScript.

Every statement and expression handler is a coroutine so a script can
suspend (``wait``, dialogs, awaitable host results) without blocking the
event loop. The environment is passed explicitly to every handler and
statements report ``break``/``continue``/``return`` by returning a
``Signal``; nothing about the current scope lives on the interpreter, so
event handlers of the same run can interleave safely.

Each run gets its own ``Interpreter``. The only state shared with other runs
is the ``BuiltinTable`` handed in by the engine.
"""

from __future__ import annotations

import asyncio
import inspect
import math
import re
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from .ast import (
    Program, Statement, Expression, Body,
    Literal, Variable, ArrayLiteral, ObjectLiteral, Unary, Binary, Logical,
    Call, Index, Member,
    SetStmt, PrintStmt, IfStmt, LoopStmt, WhileStmt, ForEachStmt, BreakStmt,
    ContinueStmt, FunctionDef, CallStmt, ReturnStmt, TryCatchStmt, OnStmt,
    EmitStmt, ReadStmt, WriteStmt, DeleteStmt, MkdirStmt, LaunchStmt,
    CloseStmt, WindowStmt, AlertStmt, ConfirmStmt, PromptStmt, NotifyStmt,
    PlayStmt, StopSoundStmt, WaitStmt, CommandStmt,
)
from .builtin_function import BuiltinFunction, BuiltinTable
from .context import HostContext
from .debug_log import DebugLog
from .environment import Environment
from .errors import (
    ScriptError, ScriptRuntimeError, ScriptTypeError, ScriptReferenceError,
    ScriptHostError, ScriptFatalError, ScriptIterationError, ScriptRecursionError,
    ScriptTimeoutError, ScriptHandlerLimitError, ScriptStoppedError,
)
from .limits import SafetyLimits
from .parser import parse_program
from .std import host_functions, standard_functions
from .std.dialogs import request_dialog
from .types import (
    UNDEFINED, FunctionValue, compare, get_index, get_member, is_truthy,
    normalize_number, strict_equals, to_number, to_string, type_name,
)


INTERPOLATION = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')

AUDIO_EXTENSIONS = ('.mp3', '.wav', '.ogg')

# Deadline of the run or handler invocation executing in the current task
_deadline: ContextVar[Optional[float]] = ContextVar('retroscript_deadline', default=None)


class ControlFlow(Enum):
    NONE = 'none'
    BREAK = 'break'
    CONTINUE = 'continue'
    RETURN = 'return'


@dataclass(frozen=True)
class Signal:
    flow: ControlFlow
    value: Any = UNDEFINED


BREAK = Signal(ControlFlow.BREAK)
CONTINUE = Signal(ControlFlow.CONTINUE)


@dataclass(eq=False)
class Frame:
    name: str
    line: int = 0
    column: int = 0


@dataclass
class HandlerRegistration:
    run_id: int
    event: str
    callback: Callable[[Any], Any]


def host_message(error: Exception) -> str:
    if error.args and isinstance(error.args[0], str):
        return error.args[0]
    return str(error) or type(error).__name__


class Interpreter:
    """Core interpreter that executes a RetroScript AST for one run."""
    def __init__(self,
                 context: Optional[HostContext] = None,
                 builtins: Optional[BuiltinTable] = None,
                 limits: Optional[SafetyLimits] = None,
                 run_id: int = 0,
                 log: Optional[DebugLog] = None,
                 on_output: Optional[Callable[[str], Any]] = None,
                 on_error: Optional[Callable[[ScriptError], Any]] = None):
        self.context = context or HostContext()
        self.builtins = builtins if builtins is not None else BuiltinTable(standard_functions())
        self.limits = limits or SafetyLimits()
        self.run_id = run_id
        self.session_id: Optional[str] = None
        self.log = log or DebugLog()
        self.on_output = on_output
        self.on_error = on_error

        self.globals = Environment()
        self.user_functions: Dict[str, FunctionValue] = {}
        self.local_builtins: Dict[str, BuiltinFunction] = {}
        self.call_stack: List[Frame] = []
        self.handlers: List[HandlerRegistration] = []
        self.pending: Set[asyncio.Future] = set()
        self.output: List[str] = []
        self.errors: List[ScriptError] = []
        self.running = False
        self.stopped = False
        self._fatal: Optional[ScriptFatalError] = None

        for function in host_functions(self):
            self.define_local(function)

    def define_local(self, function: BuiltinFunction):
        """Register a builtin visible to this run only."""
        self.local_builtins[function.name] = function

    # Public API

    async def run(self, program: Program, env: Optional[Environment] = None) -> Any:
        """Execute a program; a top-level `return` value becomes the result."""
        if env is not None:
            self.globals = env
        self.log(f"[run {self.run_id}] start ({len(program.statements)} statements)")
        token = _deadline.set(self._new_deadline())
        self.running = True
        try:
            signal = await self.execute_block(program.statements, self.globals)
        except RecursionError:
            raise ScriptRecursionError("Maximum recursion depth exceeded") from None
        finally:
            self.running = False
            _deadline.reset(token)
        self.log(f"[run {self.run_id}] finished")
        if signal is not None and signal.flow is ControlFlow.RETURN:
            return signal.value
        return UNDEFINED

    def stop(self, error: Optional[ScriptFatalError] = None):
        """Stop the run: cancel its suspension and unsubscribe its handlers."""
        if self.stopped:
            return
        self.stopped = True
        if error is not None:
            self._fatal = error
        self.log(f"[run {self.run_id}] stopped")
        for future in list(self.pending):
            future.cancel()
        self.cleanup()

    def cleanup(self):
        for registration in self.handlers:
            self.context.events.unsubscribe(registration.event, registration.callback)
        self.handlers.clear()

    def dispose(self):
        """Release everything the run owns."""
        self.cleanup()
        self.user_functions.clear()
        self.globals.clear()

    def get_variables(self) -> Dict[str, Any]:
        return self.globals.snapshot()

    # Limits and suspension

    def _new_deadline(self) -> Optional[float]:
        if self.limits.timeout is None:
            return None
        return asyncio.get_running_loop().time() + self.limits.timeout

    def _remaining(self) -> Optional[float]:
        deadline = _deadline.get()
        if deadline is None:
            return None
        return deadline - asyncio.get_running_loop().time()

    def _stopped_error(self) -> ScriptFatalError:
        return self._fatal or ScriptStoppedError("Script was stopped")

    def _timeout_error(self) -> ScriptTimeoutError:
        return ScriptTimeoutError(f"Script exceeded the time limit of {self.limits.timeout:g} seconds",
                                  hint="Use a shorter script, fewer waits or a larger timeout")

    def check_limits(self):
        if self.stopped:
            raise self._stopped_error()
        remaining = self._remaining()
        if remaining is not None and remaining <= 0:
            raise self._timeout_error()

    def count_iteration(self, iterations: int, kind: str):
        self.check_limits()
        if iterations > self.limits.max_loop_iterations:
            raise ScriptIterationError(
                f"{kind} loop exceeded maximum iterations ({self.limits.max_loop_iterations})",
                hint="Check the loop condition or raise max_loop_iterations")

    async def suspend(self, awaitable: Any) -> Any:
        """Await a pending completion under the remaining deadline."""
        try:
            self.check_limits()
        except ScriptFatalError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise
        future = asyncio.ensure_future(awaitable)
        self.pending.add(future)
        try:
            return await asyncio.wait_for(future, self._remaining())
        except asyncio.TimeoutError:
            raise self._timeout_error() from None
        except asyncio.CancelledError:
            if self.stopped:
                raise self._stopped_error() from None
            raise
        finally:
            self.pending.discard(future)

    async def host_call(self, what: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Call a host capability, turning host failures into catchable errors."""
        try:
            result = fn(*args)
            if inspect.isawaitable(result):
                result = await self.suspend(result)
        except (OSError, LookupError, ValueError) as error:
            raise ScriptHostError(host_message(error), hint=f"{what} failed") from error
        return result

    async def notify_host(self, event: str, payload: Any):
        result = self.context.events.emit(event, payload)
        if inspect.isawaitable(result):
            # shielded so stopping this run never cancels other runs' handlers
            await self.suspend(asyncio.shield(result))

    def write_output(self, text: str):
        self.output.append(text)
        self.log(f"[run {self.run_id}] output: {text}", 2)
        if self.on_output is not None:
            self.on_output(text)

    def report_error(self, error: ScriptError):
        self.errors.append(error)
        self.log(f"[run {self.run_id}] error: {error}")
        if self.on_error is not None:
            self.on_error(error)

    # Statements

    async def execute_block(self, statements: Body, env: Environment) -> Optional[Signal]:
        for stmt in statements:
            signal = await self.execute(stmt, env)
            if signal is not None:
                return signal
        return None

    async def execute(self, stmt: Statement, env: Environment) -> Optional[Signal]:
        self.check_limits()
        if self.log.enabled(2):
            self.log(f"[line {stmt.line}] {type(stmt).__name__}", 2)
        try:
            return await self.STATEMENT_HANDLERS[type(stmt)](self, stmt, env)
        except ScriptError as error:
            raise error.locate(stmt.line, stmt.column)

    async def exec_set(self, stmt: SetStmt, env: Environment) -> None:
        value = await self.evaluate(stmt.value, env)
        await self.assign(stmt.target, value, env)

    async def assign(self, target: Expression, value: Any, env: Environment):
        if isinstance(target, Variable):
            if not target.path:
                env.set(target.name, value)
                return
            container = env.get(target.name)
            if container is UNDEFINED or container is None:
                container = {}
                env.set(target.name, container)
            for key in target.path[:-1]:
                child = get_member(container, key)
                if child is UNDEFINED and isinstance(container, dict):
                    child = container[key] = {}
                container = child
            self.set_field(container, target.path[-1], value)
        elif isinstance(target, Index):
            container = await self.evaluate(target.target, env)
            index = await self.evaluate(target.index, env)
            if isinstance(container, list):
                position = normalize_number(to_number(index, '[]'))
                if not isinstance(position, int) or position < 0 or position > len(container):
                    raise ScriptTypeError(f"Index {to_string(index)} is out of range for an array of length {len(container)}")
                if position == len(container):
                    container.append(value)
                else:
                    container[position] = value
            else:
                key = index if isinstance(index, str) else to_string(index)
                self.set_field(container, key, value)
        elif isinstance(target, Member):
            container = await self.evaluate(target.target, env)
            self.set_field(container, target.name, value)
        else:
            raise ScriptTypeError("Invalid assignment target")

    def set_field(self, container: Any, key: str, value: Any):
        if not isinstance(container, dict):
            raise ScriptTypeError(f"Cannot set field '{key}' on {type_name(container)}")
        container[key] = value

    async def exec_print(self, stmt: PrintStmt, env: Environment) -> None:
        value = await self.evaluate(stmt.value, env)
        self.write_output(to_string(value))

    async def exec_if(self, stmt: IfStmt, env: Environment) -> Optional[Signal]:
        condition = await self.evaluate(stmt.condition, env)
        self.log(f"[line {stmt.line}] if -> {is_truthy(condition)}", 3)
        if is_truthy(condition):
            return await self.execute_block(stmt.then_body, env.extend())
        if stmt.else_body is not None:
            return await self.execute_block(stmt.else_body, env.extend())
        return None

    async def run_iteration(self, body: Body, scope: Environment) -> Optional[Signal]:
        """Run one loop iteration; returns the signal that must leave the loop."""
        signal = await self.execute_block(body, scope)
        if signal is None or signal is CONTINUE:
            return None
        return signal

    async def exec_loop(self, stmt: LoopStmt, env: Environment) -> Optional[Signal]:
        count = to_number(await self.evaluate(stmt.count, env), 'loop')
        if isinstance(count, float) and not math.isfinite(count):
            raise ScriptTypeError("Loop count must be a finite number")
        for i in range(max(0, math.floor(count))):
            self.count_iteration(i + 1, 'Count')
            scope = env.extend()
            scope.define('i', i)
            signal = await self.run_iteration(stmt.body, scope)
            if signal is BREAK:
                break
            if signal is not None:
                return signal
        return None

    async def exec_while(self, stmt: WhileStmt, env: Environment) -> Optional[Signal]:
        iterations = 0
        while True:
            iterations += 1
            self.count_iteration(iterations, 'While')
            condition = await self.evaluate(stmt.condition, env)
            self.log(f"[line {stmt.line}] while -> {is_truthy(condition)}", 3)
            if not is_truthy(condition):
                return None
            signal = await self.run_iteration(stmt.body, env.extend())
            if signal is BREAK:
                return None
            if signal is not None:
                return signal

    async def exec_for_each(self, stmt: ForEachStmt, env: Environment) -> Optional[Signal]:
        collection = await self.evaluate(stmt.iterable, env)
        if isinstance(collection, (list, tuple)):
            items = list(collection)
        elif isinstance(collection, dict):
            items = list(collection.keys())
        else:
            raise ScriptTypeError(f"Expected an array or object in for loop, got {type_name(collection)}")
        for i, item in enumerate(items):
            self.count_iteration(i + 1, 'For')
            scope = env.extend()
            scope.define(stmt.var, item)
            scope.define('i', i)
            signal = await self.run_iteration(stmt.body, scope)
            if signal is BREAK:
                break
            if signal is not None:
                return signal
        return None

    async def exec_break(self, stmt: BreakStmt, env: Environment) -> Signal:
        return BREAK

    async def exec_continue(self, stmt: ContinueStmt, env: Environment) -> Signal:
        return CONTINUE

    async def exec_function_def(self, stmt: FunctionDef, env: Environment) -> None:
        self.user_functions[stmt.name] = FunctionValue(stmt.name, stmt.params, stmt.body, env)

    async def exec_call(self, stmt: CallStmt, env: Environment) -> None:
        args = [await self.evaluate(arg, env) for arg in stmt.args]
        await self.call_function(stmt.name, args)

    async def exec_return(self, stmt: ReturnStmt, env: Environment) -> Signal:
        value = UNDEFINED if stmt.value is None else await self.evaluate(stmt.value, env)
        return Signal(ControlFlow.RETURN, value)

    async def exec_try(self, stmt: TryCatchStmt, env: Environment) -> Optional[Signal]:
        try:
            return await self.execute_block(stmt.body, env.extend())
        except ScriptRuntimeError as error:
            self.log(f"[line {stmt.line}] caught {type(error).__name__}: {error.message}", 3)
            scope = env.extend()
            scope.define(stmt.error_var, error.message)
            return await self.execute_block(stmt.handler, scope)

    async def exec_on(self, stmt: OnStmt, env: Environment) -> None:
        if len(self.handlers) >= self.limits.max_event_handlers:
            raise ScriptHandlerLimitError(
                f"Maximum event handlers ({self.limits.max_event_handlers}) exceeded",
                hint="Register handlers once, outside of loops")

        def callback(payload: Any = None):
            return self._fire_handler(stmt, env, payload)

        self.context.events.subscribe(stmt.event, callback)
        self.handlers.append(HandlerRegistration(self.run_id, stmt.event, callback))
        self.log(f"[run {self.run_id}] handler registered for '{stmt.event}'")

    async def _fire_handler(self, stmt: OnStmt, closure: Environment, payload: Any):
        if self.stopped:
            return
        token = _deadline.set(self._new_deadline())
        scope = closure.extend()
        scope.define('event', payload)
        frame = Frame(f"on {stmt.event}", stmt.line, stmt.column)
        self.call_stack.append(frame)
        self.log(f"[run {self.run_id}] firing handler for '{stmt.event}'", 3)
        try:
            # break/continue/return end the handler and go no further
            await self.execute_block(stmt.body, scope)
        except ScriptRuntimeError as error:
            self.report_error(error.locate(stmt.line, stmt.column))
        except ScriptFatalError as error:
            self.terminate(error.locate(stmt.line, stmt.column))
        except RecursionError:
            self.terminate(ScriptRecursionError("Maximum recursion depth exceeded", stmt.line, stmt.column))
        finally:
            self.call_stack.remove(frame)
            _deadline.reset(token)

    def terminate(self, error: ScriptFatalError):
        """End the owning run after a fatal error inside a handler."""
        if self.stopped:
            return
        # a running body re-raises the error itself when its suspension is cancelled
        if not self.running:
            self.report_error(error)
        self.stop(error)

    async def exec_emit(self, stmt: EmitStmt, env: Environment) -> None:
        if stmt.payload is not None:
            payload = await self.evaluate(stmt.payload, env)
        else:
            payload = {key: await self.evaluate(value, env) for key, value in stmt.fields}
        self.log(f"[line {stmt.line}] emit '{stmt.event}'", 3)
        await self.notify_host(stmt.event, payload)

    def require_filesystem(self):
        filesystem = self.context.filesystem
        if filesystem is None:
            raise ScriptHostError("Filesystem not available", hint="The host did not provide a filesystem")
        return filesystem

    async def exec_read(self, stmt: ReadStmt, env: Environment) -> None:
        filesystem = self.require_filesystem()
        path = to_string(await self.evaluate(stmt.path, env))
        content = await self.host_call('read', filesystem.read, path)
        env.set(stmt.var, content)

    async def exec_write(self, stmt: WriteStmt, env: Environment) -> None:
        filesystem = self.require_filesystem()
        content = to_string(await self.evaluate(stmt.content, env))
        path = to_string(await self.evaluate(stmt.path, env))
        await self.host_call('write', filesystem.write, path, content)

    async def exec_delete(self, stmt: DeleteStmt, env: Environment) -> None:
        filesystem = self.require_filesystem()
        path = to_string(await self.evaluate(stmt.path, env))
        await self.host_call('delete', filesystem.delete, path)

    async def exec_mkdir(self, stmt: MkdirStmt, env: Environment) -> None:
        filesystem = self.require_filesystem()
        path = to_string(await self.evaluate(stmt.path, env))
        await self.host_call('mkdir', filesystem.mkdir, path)

    def windows(self, action: str):
        windows = self.context.windows
        if windows is None:
            self.log(f"[run {self.run_id}] window manager not available; '{action}' ignored")
        return windows

    async def exec_launch(self, stmt: LaunchStmt, env: Environment) -> None:
        app = to_string(await self.evaluate(stmt.app, env))
        params = {key: await self.evaluate(value, env) for key, value in stmt.params}
        windows = self.windows('launch')
        if windows is not None:
            await self.host_call(f"launch '{app}'", windows.launch, app, params)

    async def exec_close(self, stmt: CloseStmt, env: Environment) -> None:
        target = None if stmt.target is None else await self.evaluate(stmt.target, env)
        windows = self.windows('close')
        if windows is not None:
            await self.host_call('close', windows.close, target)

    async def exec_window(self, stmt: WindowStmt, env: Environment) -> None:
        target = await self.evaluate(stmt.target, env)
        windows = self.windows(stmt.action)
        if windows is not None:
            await self.host_call(stmt.action, getattr(windows, stmt.action), target)

    async def exec_alert(self, stmt: AlertStmt, env: Environment) -> None:
        message = to_string(await self.evaluate(stmt.message, env))
        if not self.context.events.has_listeners('dialog:alert'):
            self.log(f"[Alert] {message}")
        await self.notify_host('dialog:alert', {'message': message})

    async def exec_confirm(self, stmt: ConfirmStmt, env: Environment) -> None:
        message = to_string(await self.evaluate(stmt.message, env))
        answer = request_dialog(self.context.events, 'dialog:confirm', {'message': message}, True)
        if inspect.isawaitable(answer):
            answer = await self.suspend(answer)
        env.set(stmt.var, answer)

    async def exec_prompt(self, stmt: PromptStmt, env: Environment) -> None:
        message = to_string(await self.evaluate(stmt.message, env))
        default = '' if stmt.default is None else await self.evaluate(stmt.default, env)
        answer = request_dialog(self.context.events, 'dialog:prompt',
                                {'message': message, 'defaultValue': to_string(default)}, default)
        if inspect.isawaitable(answer):
            answer = await self.suspend(answer)
        env.set(stmt.var, answer)

    async def exec_notify(self, stmt: NotifyStmt, env: Environment) -> None:
        message = to_string(await self.evaluate(stmt.message, env))
        await self.notify_host('notification:show', {'title': 'RetroScript', 'message': message})

    async def exec_play(self, stmt: PlayStmt, env: Environment) -> None:
        source = await self.evaluate(stmt.source, env)
        options = {key: await self.evaluate(value, env) for key, value in stmt.options}
        settings = {
            'volume': options.get('volume'),
            'loop': is_truthy(options.get('loop')),
            'force': is_truthy(options.get('force')),
        }
        is_file = isinstance(source, str) and (
            '/' in source or '\\' in source or source.startswith('assets/')
            or source.lower().endswith(AUDIO_EXTENSIONS))
        if is_file:
            await self.notify_host('audio:play', {'src': source, **settings})
        else:
            await self.notify_host('sound:play', {'type': to_string(source), **settings})

    async def exec_stop_sound(self, stmt: StopSoundStmt, env: Environment) -> None:
        if stmt.source is None:
            await self.notify_host('audio:stopall', {})
        else:
            await self.notify_host('audio:stop', {'src': await self.evaluate(stmt.source, env)})

    async def exec_wait(self, stmt: WaitStmt, env: Environment) -> None:
        duration = to_number(await self.evaluate(stmt.duration, env), 'wait')
        if not math.isfinite(duration):
            raise ScriptTypeError("Wait duration must be a finite number of milliseconds")
        await self.suspend(asyncio.sleep(max(0, math.floor(duration)) / 1000))

    async def exec_command(self, stmt: CommandStmt, env: Environment) -> None:
        args = [await self.evaluate(arg, env) for arg in stmt.args]
        if args and isinstance(args[0], dict):
            payload = args[0]
        elif args:
            payload = {'args': args}
        else:
            payload = {}
        if ':' in stmt.name:
            await self.notify_host(f"command:{stmt.name}", payload)
            return
        commands = self.context.commands
        if commands is None:
            self.log(f"[run {self.run_id}] command bus not available; '{stmt.name}' ignored")
            return
        await self.host_call(f"command '{stmt.name}'", commands.execute, stmt.name, payload)

    # Expressions

    async def evaluate(self, expr: Expression, env: Environment) -> Any:
        return await self.EXPRESSION_HANDLERS[type(expr)](self, expr, env)

    def interpolate(self, text: str, env: Environment) -> str:
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if not env.has(name):
                return match.group(0)
            value = env.get(name)
            if value is None or value is UNDEFINED:
                return ''
            return to_string(value)
        return INTERPOLATION.sub(replace, text)

    async def eval_literal(self, expr: Literal, env: Environment) -> Any:
        if isinstance(expr.value, str) and '$' in expr.value:
            return self.interpolate(expr.value, env)
        return expr.value

    async def eval_variable(self, expr: Variable, env: Environment) -> Any:
        value = env.get(expr.name)
        for key in expr.path:
            value = get_member(value, key)
        return value

    async def eval_array(self, expr: ArrayLiteral, env: Environment) -> List[Any]:
        return [await self.evaluate(element, env) for element in expr.elements]

    async def eval_object(self, expr: ObjectLiteral, env: Environment) -> Dict[str, Any]:
        return {key: await self.evaluate(value, env) for key, value in expr.entries}

    async def eval_unary(self, expr: Unary, env: Environment) -> Any:
        operand = await self.evaluate(expr.operand, env)
        if expr.op == '!':
            return not is_truthy(operand)
        if expr.op == '-':
            return normalize_number(-to_number(operand, '-'))
        raise ScriptTypeError(f"Unknown unary operator '{expr.op}'")

    async def eval_binary(self, expr: Binary, env: Environment) -> Any:
        left = await self.evaluate(expr.left, env)
        right = await self.evaluate(expr.right, env)
        return self.apply_binary_op(expr.op, left, right)

    async def eval_logical(self, expr: Logical, env: Environment) -> Any:
        left = await self.evaluate(expr.left, env)
        if expr.op == '&&':
            return await self.evaluate(expr.right, env) if is_truthy(left) else left
        return left if is_truthy(left) else await self.evaluate(expr.right, env)

    async def eval_call(self, expr: Call, env: Environment) -> Any:
        args = [await self.evaluate(arg, env) for arg in expr.args]
        return await self.call_function(expr.name, args)

    async def eval_index(self, expr: Index, env: Environment) -> Any:
        target = await self.evaluate(expr.target, env)
        index = await self.evaluate(expr.index, env)
        return get_index(target, index)

    async def eval_member(self, expr: Member, env: Environment) -> Any:
        return get_member(await self.evaluate(expr.target, env), expr.name)

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op == '+':
            if isinstance(a, str) or isinstance(b, str):
                return to_string(a) + to_string(b)
            if isinstance(a, list) and isinstance(b, list):
                return a + b
            return normalize_number(to_number(a, op) + to_number(b, op))
        if op in ('-', '*', '/', '%'):
            x = to_number(a, op)
            y = to_number(b, op)
            try:
                return self.apply_arithmetic(op, x, y)
            except OverflowError:
                # same sign rule as double overflow
                negative = (x < 0) != (y < 0) if op in ('*', '/') else x < 0
                return -math.inf if negative else math.inf
        if op == '==':
            return strict_equals(a, b)
        if op == '!=':
            return not strict_equals(a, b)
        if op in ('<', '>', '<=', '>='):
            return compare(op, a, b)
        raise ScriptTypeError(f"Unknown operator '{op}'")

    @staticmethod
    def apply_arithmetic(op: str, x: Any, y: Any) -> Any:
        if op == '-':
            return normalize_number(x - y)
        if op == '*':
            return normalize_number(x * y)
        if y == 0:
            return 0
        if op == '/':
            return normalize_number(x / y)
        if isinstance(x, int) and isinstance(y, int):
            remainder = abs(x) % abs(y)
            return -remainder if x < 0 else remainder
        if not math.isfinite(x) or math.isnan(y):
            return math.nan
        return normalize_number(math.fmod(x, y))

    # Functions

    def lookup_builtin(self, name: str) -> Optional[BuiltinFunction]:
        builtin = self.local_builtins.get(name)
        if builtin is None:
            builtin = self.builtins.get(name)
        return builtin

    async def call_function(self, name: str, args: List[Any]) -> Any:
        if self.log.enabled(3):
            self.log(f"call {name}({', '.join(to_string(a) for a in args)})", 3)
        function = self.user_functions.get(name)
        if function is not None:
            return await self.call_user_function(function, args)
        builtin = self.lookup_builtin(name)
        if builtin is not None:
            return await self.call_builtin(builtin, args)
        raise ScriptReferenceError(
            f"Unknown function: '{name}'",
            hint=f"Function '{name}' is not defined. Check spelling or define it with 'def {name}() {{ ... }}'")

    async def call_user_function(self, function: FunctionValue, args: List[Any]) -> Any:
        if len(self.call_stack) >= self.limits.max_recursion_depth:
            raise ScriptRecursionError(
                f"Maximum recursion depth ({self.limits.max_recursion_depth}) exceeded in '{function.name}'",
                hint="Make sure the recursion has a base case")
        frame = Frame(function.name)
        self.call_stack.append(frame)
        scope = function.closure.extend()
        for i, param in enumerate(function.params):
            scope.define(param, args[i] if i < len(args) else UNDEFINED)
        try:
            signal = await self.execute_block(function.body, scope)
        finally:
            self.call_stack.remove(frame)
        if signal is not None and signal.flow is ControlFlow.RETURN:
            return signal.value
        return UNDEFINED

    async def call_builtin(self, builtin: BuiltinFunction, args: List[Any]) -> Any:
        if builtin.arity is not None and len(args) < builtin.arity:
            plural = '' if builtin.arity == 1 else 's'
            raise ScriptTypeError(f"{builtin.name}() expects at least {builtin.arity} argument{plural}, got {len(args)}")
        try:
            result = builtin.fn(args)
            if inspect.isawaitable(result):
                result = await self.suspend(result)
        except (ScriptError, RecursionError):
            raise
        except Exception as error:
            raise ScriptRuntimeError(f"Error in function '{builtin.name}': {host_message(error)}") from error
        return result

    STATEMENT_HANDLERS: Dict[type, Callable] = {
        SetStmt: exec_set,
        PrintStmt: exec_print,
        IfStmt: exec_if,
        LoopStmt: exec_loop,
        WhileStmt: exec_while,
        ForEachStmt: exec_for_each,
        BreakStmt: exec_break,
        ContinueStmt: exec_continue,
        FunctionDef: exec_function_def,
        CallStmt: exec_call,
        ReturnStmt: exec_return,
        TryCatchStmt: exec_try,
        OnStmt: exec_on,
        EmitStmt: exec_emit,
        ReadStmt: exec_read,
        WriteStmt: exec_write,
        DeleteStmt: exec_delete,
        MkdirStmt: exec_mkdir,
        LaunchStmt: exec_launch,
        CloseStmt: exec_close,
        WindowStmt: exec_window,
        AlertStmt: exec_alert,
        ConfirmStmt: exec_confirm,
        PromptStmt: exec_prompt,
        NotifyStmt: exec_notify,
        PlayStmt: exec_play,
        StopSoundStmt: exec_stop_sound,
        WaitStmt: exec_wait,
        CommandStmt: exec_command,
    }

    EXPRESSION_HANDLERS: Dict[type, Callable] = {
        Literal: eval_literal,
        Variable: eval_variable,
        ArrayLiteral: eval_array,
        ObjectLiteral: eval_object,
        Unary: eval_unary,
        Binary: eval_binary,
        Logical: eval_logical,
        Call: eval_call,
        Index: eval_index,
        Member: eval_member,
    }


async def run_source(source: str, context: Optional[HostContext] = None, **kwargs: Any) -> Interpreter:
    """Parse and run `source`, returning the finished interpreter."""
    interpreter = Interpreter(context=context, **kwargs)
    try:
        await interpreter.run(parse_program(source))
    finally:
        interpreter.cleanup()
    return interpreter
