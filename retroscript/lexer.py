"""Tokenizer for RetroScript.

Lexing happens in two stages:

1. **Scanning**: a ``lark`` basic lexer built from the terminal grammar
   below splits the source into raw tokens. Whitespace and ``#`` comments
   are ignored; every character that no other terminal accepts becomes an
   ``UNKNOWN`` token, so scanning never fails.

2. **Classification**: raw tokens are turned into ``Token`` records.
   Identifiers are matched case-insensitively against the keyword table,
   string bodies are unescaped and numbers / variable paths get their
   literal values.

The tokenizer knows nothing about the grammar; the parser decides what an
``UNKNOWN`` token (for example an unterminated quote) means.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from lark import Lark


LEXER_GRAMMAR = r"""
    start: _item*
    _item: VARIABLE | NUMBER | STRING | NAME
         | EQ | NE | LE | GE | AND | OR
         | PLUS | MINUS | STAR | SLASH | PERCENT | LT | GT | BANG | ASSIGN
         | LPAR | RPAR | LBRACE | RBRACE | LSQB | RSQB
         | COMMA | COLON | DOT | SEMICOLON | NEWLINE | UNKNOWN

    VARIABLE: /\$[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*/
    NUMBER: /\d+(?:\.\d+)?/
    STRING: /"(?:[^"\\]|\\.)*"/s | /'(?:[^'\\]|\\.)*'/s
    NAME: /[A-Za-z_][A-Za-z0-9_]*/

    EQ: "=="
    NE: "!="
    LE: "<="
    GE: ">="
    AND: "&&"
    OR: "||"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    LT: "<"
    GT: ">"
    BANG: "!"
    ASSIGN: "="
    LPAR: "("
    RPAR: ")"
    LBRACE: "{"
    RBRACE: "}"
    LSQB: "["
    RSQB: "]"
    COMMA: ","
    COLON: ":"
    DOT: "."
    SEMICOLON: ";"
    NEWLINE: /\r?\n/
    UNKNOWN.-1: /./

    COMMENT: /#[^\n]*/
    WS: /[ \t\f\r]+/
    %ignore COMMENT
    %ignore WS
"""


SCANNER = Lark(LEXER_GRAMMAR, parser='lalr', lexer='basic')


KEYWORDS = frozenset({
    'set', 'print', 'if', 'then', 'else', 'loop', 'while', 'for', 'in',
    'break', 'continue', 'def', 'call', 'return', 'try', 'catch', 'on',
    'emit', 'read', 'into', 'write', 'to', 'delete', 'mkdir', 'launch',
    'with', 'close', 'focus', 'minimize', 'maximize', 'alert', 'confirm',
    'prompt', 'default', 'notify', 'play', 'stop', 'wait', 'command',
    'and', 'or', 'not',
})

# Keyword spellings of the symbolic operators
WORD_OPERATORS = {'and': 'AND', 'or': 'OR', 'not': 'BANG'}

ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '0': '\0',
}


@dataclass(frozen=True)
class Token:
    kind: str
    lexeme: str
    value: Any
    line: int
    column: int
    start: int = 0
    end: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme!r}, {self.line}:{self.column})"


def unescape(body: str) -> str:
    """Decode the escape sequences of a string literal body.

    Unknown escapes degrade to the character following the backslash.
    """
    out: List[str] = []
    i = 0
    length = len(body)
    while i < length:
        c = body[i]
        if c == '\\' and i + 1 < length:
            nxt = body[i + 1]
            out.append(ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(c)
        i += 1
    return ''.join(out)


def _classify(raw) -> Token:
    kind = raw.type
    lexeme = str(raw)
    value: Any = lexeme
    if kind == 'NAME':
        lowered = lexeme.lower()
        if lowered in ('true', 'false'):
            kind, value = 'BOOLEAN', lowered == 'true'
        elif lowered == 'null':
            kind, value = 'NULL', None
        elif lowered in KEYWORDS:
            kind, value = 'KEYWORD', lowered
        else:
            kind = 'IDENT'
    elif kind == 'NUMBER':
        value = float(lexeme) if '.' in lexeme else int(lexeme)
    elif kind == 'STRING':
        value = unescape(lexeme[1:-1])
    elif kind == 'VARIABLE':
        name, *path = lexeme[1:].split('.')
        value = (name, tuple(path))
    return Token(kind, lexeme, value, raw.line, raw.column, raw.start_pos, raw.end_pos)


def tokenize(source: str) -> List[Token]:
    """Convert source text into a list of tokens ending with an EOF token."""
    tokens = [_classify(raw) for raw in SCANNER.lex(source)]
    # EOF sits just past the last character
    line = source.count('\n') + 1
    column = len(source) - (source.rfind('\n') + 1) + 1
    tokens.append(Token('EOF', '', None, line, column, len(source), len(source)))
    return tokens
