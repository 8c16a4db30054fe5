"""Abstract Syntax Tree (AST) definitions for RetroScript.

The AST classes defined in this module represent the syntactic structure
of parsed RetroScript programs. They are used by the interpreter to run
scripts. Each node corresponds to a construct in the RetroScript grammar
and carries the line and column where the construct starts.

Nodes are frozen dataclasses; child nodes are kept in tuples so that a
parsed program can be shared between runs without being mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True, kw_only=True)
class Node:
    """Base class for all AST nodes."""
    line: int = 0
    column: int = 0


# Expressions

@dataclass(frozen=True)
class Literal(Node):
    value: Any  # number, string, bool or None; strings are interpolated when evaluated


@dataclass(frozen=True)
class Variable(Node):
    name: str
    path: Tuple[str, ...] = ()  # $name.path.to.field


@dataclass(frozen=True)
class ArrayLiteral(Node):
    elements: Tuple['Expression', ...]


@dataclass(frozen=True)
class ObjectLiteral(Node):
    entries: Tuple[Tuple[str, 'Expression'], ...]


@dataclass(frozen=True)
class Unary(Node):
    op: str  # '-' or '!'
    operand: 'Expression'


@dataclass(frozen=True)
class Binary(Node):
    op: str
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class Logical(Node):
    op: str  # '&&' or '||'
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple['Expression', ...]


@dataclass(frozen=True)
class Index(Node):
    target: 'Expression'
    index: 'Expression'


@dataclass(frozen=True)
class Member(Node):
    target: 'Expression'
    name: str


Expression = Union[Literal, Variable, ArrayLiteral, ObjectLiteral, Unary, Binary, Logical, Call, Index, Member]

Body = Tuple['Statement', ...]
Fields = Tuple[Tuple[str, Expression], ...]


# Statements

@dataclass(frozen=True)
class SetStmt(Node):
    target: Expression  # Variable, Index or Member
    value: Expression


@dataclass(frozen=True)
class PrintStmt(Node):
    value: Expression


@dataclass(frozen=True)
class IfStmt(Node):
    condition: Expression
    then_body: Body
    else_body: Optional[Body] = None  # an else-if chain is a single nested IfStmt


@dataclass(frozen=True)
class LoopStmt(Node):
    count: Expression
    body: Body


@dataclass(frozen=True)
class WhileStmt(Node):
    condition: Expression
    body: Body


@dataclass(frozen=True)
class ForEachStmt(Node):
    var: str
    iterable: Expression
    body: Body


@dataclass(frozen=True)
class BreakStmt(Node):
    pass


@dataclass(frozen=True)
class ContinueStmt(Node):
    pass


@dataclass(frozen=True)
class FunctionDef(Node):
    name: str
    params: Tuple[str, ...]
    body: Body


@dataclass(frozen=True)
class CallStmt(Node):
    name: str
    args: Tuple[Expression, ...]


@dataclass(frozen=True)
class ReturnStmt(Node):
    value: Optional[Expression] = None


@dataclass(frozen=True)
class TryCatchStmt(Node):
    body: Body
    error_var: str
    handler: Body


@dataclass(frozen=True)
class OnStmt(Node):
    event: str
    body: Body


@dataclass(frozen=True)
class EmitStmt(Node):
    event: str
    fields: Fields = ()
    payload: Optional[Expression] = None  # `emit name expr` form


@dataclass(frozen=True)
class ReadStmt(Node):
    path: Expression
    var: str


@dataclass(frozen=True)
class WriteStmt(Node):
    content: Expression
    path: Expression


@dataclass(frozen=True)
class DeleteStmt(Node):
    path: Expression


@dataclass(frozen=True)
class MkdirStmt(Node):
    path: Expression


@dataclass(frozen=True)
class LaunchStmt(Node):
    app: Expression
    params: Fields = ()


@dataclass(frozen=True)
class CloseStmt(Node):
    target: Optional[Expression] = None


@dataclass(frozen=True)
class WindowStmt(Node):
    action: str  # 'focus', 'minimize' or 'maximize'
    target: Expression


@dataclass(frozen=True)
class AlertStmt(Node):
    message: Expression


@dataclass(frozen=True)
class ConfirmStmt(Node):
    message: Expression
    var: str = 'confirmed'


@dataclass(frozen=True)
class PromptStmt(Node):
    message: Expression
    default: Optional[Expression] = None
    var: str = 'input'


@dataclass(frozen=True)
class NotifyStmt(Node):
    message: Expression


@dataclass(frozen=True)
class PlayStmt(Node):
    source: Expression
    options: Fields = ()


@dataclass(frozen=True)
class StopSoundStmt(Node):
    source: Optional[Expression] = None


@dataclass(frozen=True)
class WaitStmt(Node):
    duration: Expression  # milliseconds


@dataclass(frozen=True)
class CommandStmt(Node):
    name: str
    args: Tuple[Expression, ...] = ()


Statement = Union[
    SetStmt, PrintStmt, IfStmt, LoopStmt, WhileStmt, ForEachStmt, BreakStmt,
    ContinueStmt, FunctionDef, CallStmt, ReturnStmt, TryCatchStmt, OnStmt,
    EmitStmt, ReadStmt, WriteStmt, DeleteStmt, MkdirStmt, LaunchStmt,
    CloseStmt, WindowStmt, AlertStmt, ConfirmStmt, PromptStmt, NotifyStmt,
    PlayStmt, StopSoundStmt, WaitStmt, CommandStmt,
]


@dataclass(frozen=True)
class Program(Node):
    statements: Body
