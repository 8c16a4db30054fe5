import pytest

from retroscript.ast import (
    Binary, CallStmt, EmitStmt, ForEachStmt, FunctionDef, IfStmt, Index, LaunchStmt,
    Literal, Logical, Member, OnStmt, PrintStmt, PromptStmt, ConfirmStmt, SetStmt,
    TryCatchStmt, Unary, Variable, WindowStmt, Call, ArrayLiteral, ObjectLiteral,
)
from retroscript.errors import ScriptParseError
from retroscript.parser import parse_program


def first(source):
    return parse_program(source).statements[0]


def expr(source):
    return first(f"print {source}").value


def test_set_forms():
    assert isinstance(first("set $x = 1"), SetStmt)
    bare = first("$x = 2")
    assert isinstance(bare, SetStmt) and bare.target.name == 'x'
    path = first("set $o.a.b = 1").target
    assert isinstance(path, Variable) and path.path == ('a', 'b')
    index = first("set $arr[0] = 5").target
    assert isinstance(index, Index)


def test_keywords_in_any_case():
    program = parse_program("SET $x = 1\nPrint $x")
    assert [type(s) for s in program.statements] == [SetStmt, PrintStmt]


def test_multiplication_binds_tighter_than_addition():
    node = expr("1 + 2 * 3")
    assert isinstance(node, Binary) and node.op == '+'
    assert node.right.op == '*'


def test_parentheses_reset_precedence():
    node = expr("(1 + 2) * 3")
    assert node.op == '*'
    assert node.left.op == '+'


def test_binary_operators_are_left_associative():
    node = expr("1 - 2 - 3")
    assert node.op == '-'
    assert isinstance(node.left, Binary) and node.left.op == '-'
    assert node.right == Literal(3, line=1, column=15)


def test_logical_precedence_and_word_operators():
    node = expr("$a || $b && $c")
    assert isinstance(node, Logical) and node.op == '||'
    assert node.right.op == '&&'
    node = expr("not $a and $b")
    assert node.op == '&&'
    assert isinstance(node.left, Unary) and node.left.op == '!'


def test_comparison_below_arithmetic():
    node = expr("$a + 1 >= $b * 2")
    assert node.op == '>='
    assert node.left.op == '+' and node.right.op == '*'


def test_postfix_access():
    node = expr("$list[0].name")
    assert isinstance(node, Member) and node.name == 'name'
    assert isinstance(node.target, Index)
    node = expr("fromJSON($s).items[1]")
    assert isinstance(node, Index)
    assert isinstance(node.target.target, Call)


def test_keyword_named_builtin_call():
    node = first('set $ok = confirm("Sure?")').value
    assert isinstance(node, Call) and node.name == 'confirm'


def test_newlines_inside_brackets_and_after_operators():
    node = first("set $a = [1,\n  2,\n  3]").value
    assert isinstance(node, ArrayLiteral) and len(node.elements) == 3
    node = first("set $o = {\n  a: 1,\n  \"b c\": 2\n}").value
    assert isinstance(node, ObjectLiteral)
    assert [key for key, _ in node.entries] == ['a', 'b c']
    node = first("set $x = 1 +\n  2").value
    assert isinstance(node, Binary)
    node = first("set $x = max(1,\n 2)").value
    assert isinstance(node, Call) and len(node.args) == 2


def test_if_else_if_chain():
    stmt = first("if $a { print 1 } else if $b then { print 2 } else { print 3 }")
    assert isinstance(stmt, IfStmt)
    nested = stmt.else_body[0]
    assert isinstance(nested, IfStmt)
    assert isinstance(nested.else_body[0], PrintStmt)


def test_else_on_next_line():
    stmt = first("if $a {\n  print 1\n}\nelse {\n  print 2\n}")
    assert stmt.else_body is not None


def test_for_each():
    stmt = first("for $item in $list { print $item }")
    assert isinstance(stmt, ForEachStmt)
    assert stmt.var == 'item'


def test_break_outside_loop_is_a_parse_error():
    with pytest.raises(ScriptParseError):
        parse_program("break")
    with pytest.raises(ScriptParseError):
        parse_program("if true { continue }")


def test_break_cannot_cross_function_or_handler_bodies():
    with pytest.raises(ScriptParseError):
        parse_program("loop 3 { def f() { break } }")
    with pytest.raises(ScriptParseError):
        parse_program("while true { on tick { break } }")
    parse_program("loop 3 { if $i == 1 { break } }")


def test_function_definitions():
    stmt = first("def f($a, b) { return $a }")
    assert isinstance(stmt, FunctionDef)
    assert stmt.params == ('a', 'b')
    assert first("def g { }").params == ()


def test_call_forms():
    words = first('call greet "Bob" 42')
    assert isinstance(words, CallStmt)
    assert [a.value for a in words.args] == ['Bob', 42]
    parens = first('call greet("Bob", 42)')
    assert len(parens.args) == 2
    bare = first('greet("Bob")')
    assert isinstance(bare, CallStmt) and bare.name == 'greet'


def test_try_catch_variable():
    assert first("try { print 1 } catch { print 2 }").error_var == 'error'
    stmt = first("try {\n  print 1\n}\ncatch $e {\n  print $e\n}")
    assert isinstance(stmt, TryCatchStmt) and stmt.error_var == 'e'


def test_event_names():
    assert first("on app:launch { print 1 }").event == 'app:launch'
    assert first("on file-saved:* { }").event == 'file-saved:*'
    assert first("on 'custom event' { }").event == 'custom event'
    single = first('on ping print "pong"')
    assert isinstance(single, OnStmt) and isinstance(single.body[0], PrintStmt)


def test_spaces_end_an_event_name():
    stmt = first("emit ready -1")
    assert stmt.event == 'ready'
    assert isinstance(stmt.payload, Unary)


def test_emit_fields_and_payload():
    stmt = first('emit app:launch id=1 name="x" default=true')
    assert isinstance(stmt, EmitStmt)
    assert [key for key, _ in stmt.fields] == ['id', 'name', 'default']
    payload = first("emit data [1, 2]")
    assert payload.fields == () and isinstance(payload.payload, ArrayLiteral)
    assert first("emit done").payload is None


def test_host_statements():
    launch = first('launch notepad with title="Notes" width=300')
    assert isinstance(launch, LaunchStmt)
    assert launch.app == Literal('notepad', line=1, column=8)
    assert [key for key, _ in launch.params] == ['title', 'width']
    window = first('minimize "notepad"')
    assert isinstance(window, WindowStmt) and window.action == 'minimize'
    assert first("close").target is None


def test_dialog_statements():
    confirm = first('confirm "Sure?"')
    assert isinstance(confirm, ConfirmStmt) and confirm.var == 'confirmed'
    assert first('confirm "Sure?" into $ok').var == 'ok'
    prompt = first('prompt "Name?" default "anon" into $name')
    assert isinstance(prompt, PromptStmt)
    assert prompt.var == 'name'
    assert prompt.default.value == 'anon'
    assert first('prompt "Name?"').var == 'input'


def test_statement_positions():
    program = parse_program("set $a = 1\n\n  print $a")
    assert (program.statements[1].line, program.statements[1].column) == (3, 3)


@pytest.mark.parametrize('source, message', [
    ('print "abc', 'Unterminated string'),
    ('if true { print 1', 'Unterminated'),
    ('set x = 1', 'Expected a variable'),
    ('foo', 'Unknown statement'),
    ('print 1 print 2', 'after statement'),
    ('}', "Unexpected '}'"),
    ('print', 'Unexpected end of input'),
    ('for $x of $y { }', "Expected 'in'"),
    ('read "/a.txt" $x', "Expected 'into'"),
    ('print 1 @', "Unexpected character '@'"),
    ('emit', 'Expected an event name'),
    ('launch notepad title', 'Expected key=value'),
])
def test_syntax_errors(source, message):
    with pytest.raises(ScriptParseError) as info:
        parse_program(source)
    assert message in info.value.message


def test_syntax_error_position_and_hint():
    with pytest.raises(ScriptParseError) as info:
        parse_program("print 1\nprint (")
    assert info.value.line == 2
    with pytest.raises(ScriptParseError) as info:
        parse_program("set count = 1")
    assert '$' in info.value.hint
