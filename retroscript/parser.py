"""Parser for RetroScript.

Statements are parsed by recursive descent: every statement keyword maps to
its own ``parse_*`` production. Expressions are parsed by precedence
climbing over this ascending ladder::

    ||  <  &&  <  == !=  <  < > <= >=  <  + -  <  * / %  <  unary  <  postfix

Statements end at a newline, a ``;``, a closing ``}`` or the end of input.
Newlines are insignificant inside parentheses, brackets and literal braces
and directly after a binary operator, so long expressions can be wrapped.

Any syntax error aborts the whole parse with a ``ScriptParseError`` carrying
the position of the offending token and a hint; no partial program is ever
returned.

The `parse_program` function is the public entry point and returns a
`Program` AST node representing the entire script.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .ast import (
    Program, Expression, Statement, Body, Fields,
    Literal, Variable, ArrayLiteral, ObjectLiteral, Unary, Binary, Logical,
    Call, Index, Member,
    SetStmt, PrintStmt, IfStmt, LoopStmt, WhileStmt, ForEachStmt, BreakStmt,
    ContinueStmt, FunctionDef, CallStmt, ReturnStmt, TryCatchStmt, OnStmt,
    EmitStmt, ReadStmt, WriteStmt, DeleteStmt, MkdirStmt, LaunchStmt,
    CloseStmt, WindowStmt, AlertStmt, ConfirmStmt, PromptStmt, NotifyStmt,
    PlayStmt, StopSoundStmt, WaitStmt, CommandStmt,
)
from .errors import ScriptParseError
from .lexer import Token, WORD_OPERATORS, tokenize


# Binary operator token kind -> (precedence, source symbol)
BINARY_OPERATORS = {
    'OR': (1, '||'),
    'AND': (2, '&&'),
    'EQ': (3, '=='),
    'NE': (3, '!='),
    'LT': (4, '<'),
    'GT': (4, '>'),
    'LE': (4, '<='),
    'GE': (4, '>='),
    'PLUS': (5, '+'),
    'MINUS': (5, '-'),
    'STAR': (6, '*'),
    'SLASH': (6, '/'),
    'PERCENT': (6, '%'),
}

UNARY_OPERATORS = {'MINUS': '-', 'BANG': '!'}

STATEMENT_KEYWORDS = {
    'set': 'parse_set',
    'print': 'parse_print',
    'if': 'parse_if',
    'loop': 'parse_loop',
    'while': 'parse_while',
    'for': 'parse_for',
    'break': 'parse_break',
    'continue': 'parse_continue',
    'def': 'parse_def',
    'call': 'parse_call',
    'return': 'parse_return',
    'try': 'parse_try',
    'on': 'parse_on',
    'emit': 'parse_emit',
    'read': 'parse_read',
    'write': 'parse_write',
    'delete': 'parse_delete',
    'mkdir': 'parse_mkdir',
    'launch': 'parse_launch',
    'close': 'parse_close',
    'focus': 'parse_window',
    'minimize': 'parse_window',
    'maximize': 'parse_window',
    'alert': 'parse_alert',
    'confirm': 'parse_confirm',
    'prompt': 'parse_prompt',
    'notify': 'parse_notify',
    'play': 'parse_play',
    'stop': 'parse_stop',
    'wait': 'parse_wait',
    'command': 'parse_command',
}

# Tokens that may appear as a segment of an event name or as a key
NAME_KINDS = ('IDENT', 'KEYWORD', 'BOOLEAN', 'NULL')
EVENT_SEGMENT_KINDS = NAME_KINDS + ('NUMBER', 'STAR')
STATEMENT_END_KINDS = ('NEWLINE', 'SEMICOLON', 'RBRACE', 'EOF')


def describe(token: Token) -> str:
    if token.kind == 'EOF':
        return 'end of input'
    if token.kind == 'NEWLINE':
        return 'end of line'
    return f"'{token.lexeme}'"


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        # > 0 while inside ( ) [ ] or a literal { }; newlines are skipped there
        self.nesting = 0
        self.loop_depth = 0

    # Token helpers

    def peek(self) -> Token:
        if self.nesting:
            while self.tokens[self.pos].kind == 'NEWLINE':
                self.pos += 1
        return self.tokens[self.pos]

    def peek_next(self) -> Token:
        self.peek()
        return self.tokens[min(self.pos + 1, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != 'EOF':
            self.pos += 1
        return token

    def check(self, kind: str, *values: str) -> bool:
        token = self.peek()
        if token.kind != kind:
            return False
        return not values or token.value in values

    def match(self, kind: str, *values: str) -> Optional[Token]:
        if self.check(kind, *values):
            return self.advance()
        return None

    def expect(self, kind: str, message: str, hint: str = '') -> Token:
        if self.check(kind):
            return self.advance()
        token = self.peek()
        if token.kind == 'UNKNOWN':
            raise self.unknown_token(token)
        raise self.error(f"{message}, got {describe(token)}", token, hint)

    def error(self, message: str, token: Token, hint: str = '') -> ScriptParseError:
        return ScriptParseError(message, token.line, token.column, hint)

    def unknown_token(self, token: Token) -> ScriptParseError:
        if token.lexeme in ('"', "'"):
            return self.error("Unterminated string", token, f"Add a closing {token.lexeme} to end the string")
        return self.error(f"Unexpected character '{token.lexeme}'", token)

    def skip_newlines(self):
        while self.tokens[self.pos].kind == 'NEWLINE':
            self.pos += 1

    def skip_separators(self):
        while self.tokens[self.pos].kind in ('NEWLINE', 'SEMICOLON'):
            self.pos += 1

    def at_statement_end(self) -> bool:
        return self.peek().kind in STATEMENT_END_KINDS

    def end_statement(self):
        token = self.peek()
        if token.kind in ('NEWLINE', 'SEMICOLON'):
            self.advance()
        elif token.kind not in ('RBRACE', 'EOF'):
            if token.kind == 'UNKNOWN':
                raise self.unknown_token(token)
            raise self.error(f"Unexpected {describe(token)} after statement", token,
                             "Put each statement on its own line or separate them with ';'")

    def adjacent(self, left: Token, right: Token) -> bool:
        return left.end == right.start

    def followed_by_else(self, keyword: str) -> bool:
        # `else` / `catch` may start the next line
        saved = self.pos
        self.skip_newlines()
        if self.check('KEYWORD', keyword):
            return True
        self.pos = saved
        return False

    # Program and blocks

    def parse_program(self) -> Program:
        statements: List[Statement] = []
        self.skip_separators()
        while not self.check('EOF'):
            if self.check('RBRACE'):
                raise self.error("Unexpected '}'", self.peek(), "This '}' has no matching '{'")
            statements.append(self.parse_statement())
            self.end_statement()
            self.skip_separators()
        return Program(tuple(statements), line=1, column=1)

    def parse_block(self, what: str = 'block') -> Body:
        open_brace = self.expect('LBRACE', f"Expected '{{' to start {what}",
                                 "Blocks must be wrapped in { }")
        statements: List[Statement] = []
        self.skip_separators()
        while not self.check('RBRACE'):
            if self.check('EOF'):
                raise self.error(f"Unterminated {what}", open_brace, "Add a closing '}'")
            statements.append(self.parse_statement())
            self.end_statement()
            self.skip_separators()
        self.advance()
        return tuple(statements)

    def parse_loop_body(self, what: str) -> Body:
        self.loop_depth += 1
        try:
            return self.parse_block(what)
        finally:
            self.loop_depth -= 1

    def parse_isolated_body(self, what: str) -> Body:
        # function and handler bodies cannot break out of an enclosing loop
        saved = self.loop_depth
        self.loop_depth = 0
        try:
            return self.parse_block(what)
        finally:
            self.loop_depth = saved

    # Statements

    def parse_statement(self) -> Statement:
        token = self.peek()
        if token.kind == 'KEYWORD':
            production = STATEMENT_KEYWORDS.get(token.value)
            if production is None:
                raise self.error(f"Unexpected keyword '{token.lexeme}'", token,
                                 "A statement cannot start with this keyword")
            return getattr(self, production)()
        if token.kind == 'VARIABLE':
            return self.parse_assignment(token)
        if token.kind == 'IDENT':
            if self.peek_next().kind == 'LPAR':
                call = self.parse_call_expression()
                return CallStmt(call.name, call.args, line=token.line, column=token.column)
            raise self.error(f"Unknown statement '{token.lexeme}'", token,
                             f"Use 'set ${token.lexeme} = ...' for variables or "
                             f"'call {token.lexeme}' to call a function")
        if token.kind == 'UNKNOWN':
            raise self.unknown_token(token)
        raise self.error(f"Unexpected {describe(token)}", token, "Expected a statement")

    def parse_assignment(self, start: Token) -> SetStmt:
        target = self.parse_postfix(self.parse_primary())
        if not isinstance(target, (Variable, Index, Member)):
            raise self.error("Invalid assignment target", start,
                             "Only variables, $var[index] and $var.field can be assigned")
        self.expect('ASSIGN', "Expected '=' in assignment",
                    "A variable on its own is not a statement; did you mean 'print'?")
        self.skip_newlines()
        value = self.parse_expression()
        return SetStmt(target, value, line=start.line, column=start.column)

    def parse_set(self) -> SetStmt:
        keyword = self.advance()
        token = self.peek()
        if token.kind != 'VARIABLE':
            raise self.error(f"Expected a variable after 'set', got {describe(token)}", token,
                             "Variable names start with $, e.g. set $count = 1")
        statement = self.parse_assignment(token)
        return SetStmt(statement.target, statement.value, line=keyword.line, column=keyword.column)

    def parse_print(self) -> PrintStmt:
        keyword = self.advance()
        return PrintStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_if(self) -> IfStmt:
        keyword = self.advance()
        condition = self.parse_expression()
        self.match('KEYWORD', 'then')
        then_body = self.parse_block("'if' body")
        else_body: Optional[Body] = None
        if self.followed_by_else('else'):
            self.advance()
            if self.check('KEYWORD', 'if'):
                else_body = (self.parse_if(),)
            else:
                else_body = self.parse_block("'else' body")
        return IfStmt(condition, then_body, else_body, line=keyword.line, column=keyword.column)

    def parse_loop(self) -> LoopStmt:
        keyword = self.advance()
        count = self.parse_expression()
        body = self.parse_loop_body("'loop' body")
        return LoopStmt(count, body, line=keyword.line, column=keyword.column)

    def parse_while(self) -> WhileStmt:
        keyword = self.advance()
        condition = self.parse_expression()
        body = self.parse_loop_body("'while' body")
        return WhileStmt(condition, body, line=keyword.line, column=keyword.column)

    def parse_for(self) -> ForEachStmt:
        keyword = self.advance()
        var = self.parse_variable_name("after 'for'")
        if not self.match('KEYWORD', 'in'):
            raise self.error(f"Expected 'in' in for loop, got {describe(self.peek())}", self.peek(),
                             "Write: for $item in $list { ... }")
        iterable = self.parse_expression()
        body = self.parse_loop_body("'for' body")
        return ForEachStmt(var, iterable, body, line=keyword.line, column=keyword.column)

    def parse_break(self) -> BreakStmt:
        keyword = self.advance()
        if not self.loop_depth:
            raise self.error("'break' can only be used inside a loop", keyword)
        return BreakStmt(line=keyword.line, column=keyword.column)

    def parse_continue(self) -> ContinueStmt:
        keyword = self.advance()
        if not self.loop_depth:
            raise self.error("'continue' can only be used inside a loop", keyword)
        return ContinueStmt(line=keyword.line, column=keyword.column)

    def parse_def(self) -> FunctionDef:
        keyword = self.advance()
        name = self.expect('IDENT', "Expected a function name after 'def'",
                           "Function names are plain identifiers, e.g. def greet($name) { ... }")
        params: List[str] = []
        if self.match('LPAR'):
            self.nesting += 1
            while not self.check('RPAR'):
                param = self.peek()
                if param.kind == 'VARIABLE' and not param.value[1]:
                    params.append(param.value[0])
                elif param.kind == 'IDENT':
                    params.append(param.lexeme)
                else:
                    raise self.error(f"Expected a parameter name, got {describe(param)}", param)
                self.advance()
                if not self.match('COMMA'):
                    break
            self.nesting -= 1
            self.expect('RPAR', "Expected ')' after parameters")
        body = self.parse_isolated_body('function body')
        return FunctionDef(name.lexeme, tuple(params), body, line=keyword.line, column=keyword.column)

    def parse_call(self) -> CallStmt:
        keyword = self.advance()
        name = self.peek()
        if name.kind not in ('IDENT', 'KEYWORD'):
            raise self.error(f"Expected a function name after 'call', got {describe(name)}", name)
        self.advance()
        nxt = self.tokens[self.pos]
        if nxt.kind == 'LPAR' and self.adjacent(name, nxt):
            args = self.parse_arguments()
        else:
            args = self.parse_word_arguments()
        call_name = name.value if name.kind == 'KEYWORD' else name.lexeme
        return CallStmt(call_name, args, line=keyword.line, column=keyword.column)

    def parse_return(self) -> ReturnStmt:
        keyword = self.advance()
        value = None if self.at_statement_end() else self.parse_expression()
        return ReturnStmt(value, line=keyword.line, column=keyword.column)

    def parse_try(self) -> TryCatchStmt:
        keyword = self.advance()
        body = self.parse_block("'try' body")
        if not self.followed_by_else('catch'):
            raise self.error(f"Expected 'catch' after 'try' block, got {describe(self.peek())}",
                             self.peek(), "Write: try { ... } catch $error { ... }")
        self.advance()
        error_var = 'error'
        if self.check('VARIABLE'):
            error_var = self.parse_variable_name("after 'catch'")
        handler = self.parse_block("'catch' body")
        return TryCatchStmt(body, error_var, handler, line=keyword.line, column=keyword.column)

    def parse_on(self) -> OnStmt:
        keyword = self.advance()
        event = self.parse_event_name("after 'on'")
        if self.check('LBRACE'):
            body = self.parse_isolated_body('event handler')
        else:
            saved = self.loop_depth
            self.loop_depth = 0
            try:
                body = (self.parse_statement(),)
            finally:
                self.loop_depth = saved
        return OnStmt(event, body, line=keyword.line, column=keyword.column)

    def parse_emit(self) -> EmitStmt:
        keyword = self.advance()
        event = self.parse_event_name("after 'emit'")
        if self.at_field():
            return EmitStmt(event, self.parse_fields(), line=keyword.line, column=keyword.column)
        payload = None if self.at_statement_end() else self.parse_expression()
        return EmitStmt(event, (), payload, line=keyword.line, column=keyword.column)

    def parse_read(self) -> ReadStmt:
        keyword = self.advance()
        path = self.parse_expression()
        if not self.match('KEYWORD', 'into'):
            raise self.error(f"Expected 'into' after the path, got {describe(self.peek())}",
                             self.peek(), "Write: read \"/path/file.txt\" into $content")
        var = self.parse_variable_name("after 'into'")
        return ReadStmt(path, var, line=keyword.line, column=keyword.column)

    def parse_write(self) -> WriteStmt:
        keyword = self.advance()
        content = self.parse_expression()
        if not self.match('KEYWORD', 'to'):
            raise self.error(f"Expected 'to' after the content, got {describe(self.peek())}",
                             self.peek(), "Write: write \"text\" to \"/path/file.txt\"")
        path = self.parse_expression()
        return WriteStmt(content, path, line=keyword.line, column=keyword.column)

    def parse_delete(self) -> DeleteStmt:
        keyword = self.advance()
        return DeleteStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_mkdir(self) -> MkdirStmt:
        keyword = self.advance()
        return MkdirStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_launch(self) -> LaunchStmt:
        keyword = self.advance()
        app = self.parse_word_or_expression("an app name after 'launch'")
        self.match('KEYWORD', 'with')
        params = self.parse_fields()
        return LaunchStmt(app, params, line=keyword.line, column=keyword.column)

    def parse_close(self) -> CloseStmt:
        keyword = self.advance()
        target = None if self.at_statement_end() else self.parse_expression()
        return CloseStmt(target, line=keyword.line, column=keyword.column)

    def parse_window(self) -> WindowStmt:
        keyword = self.advance()
        target = self.parse_expression()
        return WindowStmt(keyword.value, target, line=keyword.line, column=keyword.column)

    def parse_alert(self) -> AlertStmt:
        keyword = self.advance()
        return AlertStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_confirm(self) -> ConfirmStmt:
        keyword = self.advance()
        message = self.parse_expression()
        var = 'confirmed'
        if self.match('KEYWORD', 'into'):
            var = self.parse_variable_name("after 'into'")
        return ConfirmStmt(message, var, line=keyword.line, column=keyword.column)

    def parse_prompt(self) -> PromptStmt:
        keyword = self.advance()
        message = self.parse_expression()
        default = None
        if self.match('KEYWORD', 'default'):
            default = self.parse_expression()
        var = 'input'
        if self.match('KEYWORD', 'into'):
            var = self.parse_variable_name("after 'into'")
        return PromptStmt(message, default, var, line=keyword.line, column=keyword.column)

    def parse_notify(self) -> NotifyStmt:
        keyword = self.advance()
        return NotifyStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_play(self) -> PlayStmt:
        keyword = self.advance()
        source = self.parse_word_or_expression("a sound after 'play'")
        options = self.parse_fields()
        return PlayStmt(source, options, line=keyword.line, column=keyword.column)

    def parse_stop(self) -> StopSoundStmt:
        keyword = self.advance()
        source = None if self.at_statement_end() else self.parse_expression()
        return StopSoundStmt(source, line=keyword.line, column=keyword.column)

    def parse_wait(self) -> WaitStmt:
        keyword = self.advance()
        return WaitStmt(self.parse_expression(), line=keyword.line, column=keyword.column)

    def parse_command(self) -> CommandStmt:
        keyword = self.advance()
        name = self.parse_event_name("after 'command'")
        args = self.parse_word_arguments()
        return CommandStmt(name, args, line=keyword.line, column=keyword.column)

    # Statement pieces

    def parse_variable_name(self, where: str) -> str:
        token = self.peek()
        if token.kind != 'VARIABLE' or token.value[1]:
            raise self.error(f"Expected a variable name {where}, got {describe(token)}", token,
                             "Variable names start with $, e.g. $result")
        self.advance()
        return token.value[0]

    def parse_event_name(self, where: str) -> str:
        token = self.peek()
        if token.kind == 'STRING':
            self.advance()
            return token.value
        if token.kind not in EVENT_SEGMENT_KINDS:
            raise self.error(f"Expected an event name {where}, got {describe(token)}", token,
                             "Event names look like app:launch or file-saved")
        self.advance()
        parts = [token.lexeme]
        last = token
        while True:
            separator = self.tokens[self.pos]
            segment = self.tokens[min(self.pos + 1, len(self.tokens) - 1)]
            if (separator.kind in ('COLON', 'MINUS') and self.adjacent(last, separator)
                    and segment.kind in EVENT_SEGMENT_KINDS and self.adjacent(separator, segment)):
                parts.append(separator.lexeme)
                parts.append(segment.lexeme)
                self.pos += 2
                last = segment
                continue
            break
        return ''.join(parts)

    def at_field(self) -> bool:
        token = self.peek()
        return token.kind in NAME_KINDS and self.peek_next().kind == 'ASSIGN'

    def parse_fields(self) -> Fields:
        fields: List[Tuple[str, Expression]] = []
        while self.at_field():
            key = self.advance()
            self.advance()
            fields.append((key.lexeme, self.parse_expression()))
        if not self.at_statement_end():
            token = self.peek()
            raise self.error(f"Expected key=value, got {describe(token)}", token,
                             "Parameters are written as name=value pairs")
        return tuple(fields)

    def parse_word_or_expression(self, what: str) -> Expression:
        token = self.peek()
        if token.kind == 'IDENT' and self.peek_next().kind != 'LPAR':
            self.advance()
            return Literal(token.lexeme, line=token.line, column=token.column)
        if self.at_statement_end():
            raise self.error(f"Expected {what}, got {describe(token)}", token)
        return self.parse_expression()

    def parse_word_arguments(self) -> Tuple[Expression, ...]:
        args: List[Expression] = []
        while not self.at_statement_end():
            args.append(self.parse_unary())
        return tuple(args)

    def parse_arguments(self) -> Tuple[Expression, ...]:
        self.expect('LPAR', "Expected '('")
        self.nesting += 1
        args: List[Expression] = []
        while not self.check('RPAR'):
            args.append(self.parse_expression())
            if not self.match('COMMA'):
                break
        self.nesting -= 1
        self.expect('RPAR', "Expected ')' after arguments", "Separate arguments with ','")
        return tuple(args)

    # Expressions

    def parse_expression(self, min_precedence: int = 1) -> Expression:
        left = self.parse_unary()
        while True:
            token = self.peek()
            kind = token.kind
            if kind == 'KEYWORD':
                kind = WORD_OPERATORS.get(token.value, kind)
            operator = BINARY_OPERATORS.get(kind)
            if operator is None or operator[0] < min_precedence:
                return left
            precedence, symbol = operator
            self.advance()
            self.skip_newlines()
            right = self.parse_expression(precedence + 1)
            node_type = Logical if kind in ('AND', 'OR') else Binary
            left = node_type(symbol, left, right, line=left.line, column=left.column)

    def parse_unary(self) -> Expression:
        token = self.peek()
        kind = token.kind
        if kind == 'KEYWORD' and token.value == 'not':
            kind = 'BANG'
        if kind in UNARY_OPERATORS:
            self.advance()
            operand = self.parse_unary()
            return Unary(UNARY_OPERATORS[kind], operand, line=token.line, column=token.column)
        return self.parse_postfix(self.parse_primary())

    def parse_postfix(self, node: Expression) -> Expression:
        while True:
            token = self.peek()
            if token.kind == 'LSQB':
                self.advance()
                self.nesting += 1
                index = self.parse_expression()
                self.nesting -= 1
                self.expect('RSQB', "Expected ']' after index")
                node = Index(node, index, line=node.line, column=node.column)
                continue
            if token.kind == 'DOT':
                self.advance()
                name = self.peek()
                if name.kind not in NAME_KINDS:
                    raise self.error(f"Expected a field name after '.', got {describe(name)}", name)
                self.advance()
                node = Member(node, name.lexeme, line=node.line, column=node.column)
                continue
            return node

    def parse_call_expression(self) -> Call:
        name = self.advance()
        args = self.parse_arguments()
        call_name = name.value if name.kind == 'KEYWORD' else name.lexeme
        return Call(call_name, args, line=name.line, column=name.column)

    def parse_primary(self) -> Expression:
        token = self.peek()
        kind = token.kind
        if kind in ('NUMBER', 'STRING', 'BOOLEAN', 'NULL'):
            self.advance()
            return Literal(token.value, line=token.line, column=token.column)
        if kind == 'VARIABLE':
            self.advance()
            name, path = token.value
            return Variable(name, path, line=token.line, column=token.column)
        if kind == 'LSQB':
            return self.parse_array()
        if kind == 'LBRACE':
            return self.parse_object()
        if kind == 'LPAR':
            self.advance()
            self.nesting += 1
            expr = self.parse_expression()
            self.nesting -= 1
            self.expect('RPAR', "Expected ')' to close '('")
            return expr
        if kind in ('IDENT', 'KEYWORD') and self.peek_next().kind == 'LPAR':
            return self.parse_call_expression()
        if kind == 'IDENT':
            raise self.error(f"Unexpected identifier '{token.lexeme}'", token,
                             f"Use ${token.lexeme} to read a variable or {token.lexeme}(...) to call a function")
        if kind == 'UNKNOWN':
            raise self.unknown_token(token)
        if kind == 'EOF':
            raise self.error("Unexpected end of input", token, "An expression was expected")
        raise self.error(f"Unexpected {describe(token)}", token, "An expression was expected")

    def parse_array(self) -> ArrayLiteral:
        start = self.advance()
        self.nesting += 1
        elements: List[Expression] = []
        while not self.check('RSQB'):
            elements.append(self.parse_expression())
            if not self.match('COMMA'):
                break
        self.nesting -= 1
        self.expect('RSQB', "Expected ']' to close the array", "Separate elements with ','")
        return ArrayLiteral(tuple(elements), line=start.line, column=start.column)

    def parse_object(self) -> ObjectLiteral:
        start = self.advance()
        self.nesting += 1
        entries: List[Tuple[str, Expression]] = []
        while not self.check('RBRACE'):
            key = self.peek()
            if key.kind == 'STRING':
                name = key.value
            elif key.kind in NAME_KINDS or key.kind == 'NUMBER':
                name = key.lexeme
            else:
                raise self.error(f"Expected an object key, got {describe(key)}", key,
                                 "Object entries are written as key: value")
            self.advance()
            self.expect('COLON', "Expected ':' after object key")
            entries.append((name, self.parse_expression()))
            if not self.match('COMMA'):
                break
        self.nesting -= 1
        self.expect('RBRACE', "Expected '}' to close the object", "Separate entries with ','")
        return ObjectLiteral(tuple(entries), line=start.line, column=start.column)


def parse_tokens(tokens: List[Token]) -> Program:
    parser = Parser(tokens)
    try:
        return parser.parse_program()
    except RecursionError:
        raise parser.error("Expression nested too deeply", parser.tokens[parser.pos],
                           "Break the expression into smaller parts with 'set'") from None


def parse_program(source: str) -> Program:
    """Parse RetroScript source code into an AST Program."""
    return parse_tokens(tokenize(source))
