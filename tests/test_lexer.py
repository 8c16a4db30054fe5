import pytest

from retroscript.lexer import tokenize


def kinds(source):
    return [t.kind for t in tokenize(source)]


def test_keywords_are_case_insensitive():
    tokens = tokenize("SET Set set")
    assert [t.kind for t in tokens[:3]] == ['KEYWORD'] * 3
    assert [t.value for t in tokens[:3]] == ['set'] * 3
    assert tokens[0].lexeme == 'SET'


def test_identifiers_keep_their_case():
    token = tokenize("myFunc")[0]
    assert token.kind == 'IDENT'
    assert token.value == 'myFunc'


def test_literals():
    tokens = tokenize('42 1.5 "a\\nb" \'x\' true FALSE null')
    assert [t.kind for t in tokens] == [
        'NUMBER', 'NUMBER', 'STRING', 'STRING', 'BOOLEAN', 'BOOLEAN', 'NULL', 'EOF']
    assert [t.value for t in tokens[:-1]] == [42, 1.5, 'a\nb', 'x', True, False, None]


def test_unknown_escape_keeps_the_character():
    assert tokenize(r'"a\qb \"c\""')[0].value == 'aqb "c"'


def test_variable_with_path_is_one_token():
    token = tokenize("$user.name.first")[0]
    assert token.kind == 'VARIABLE'
    assert token.value == ('user', ('name', 'first'))


def test_comments_and_separators():
    assert kinds("set $x = 1 # note\nprint $x; print 2") == [
        'KEYWORD', 'VARIABLE', 'ASSIGN', 'NUMBER', 'NEWLINE',
        'KEYWORD', 'VARIABLE', 'SEMICOLON', 'KEYWORD', 'NUMBER', 'EOF']


def test_operators():
    assert kinds("== != <= >= && || ! = < > + - * / %")[:-1] == [
        'EQ', 'NE', 'LE', 'GE', 'AND', 'OR', 'BANG', 'ASSIGN', 'LT', 'GT',
        'PLUS', 'MINUS', 'STAR', 'SLASH', 'PERCENT']


def test_word_operators_are_keywords():
    tokens = tokenize("and OR Not")
    assert [(t.kind, t.value) for t in tokens[:3]] == [
        ('KEYWORD', 'and'), ('KEYWORD', 'or'), ('KEYWORD', 'not')]


def test_unterminated_string_is_an_unknown_token():
    token = tokenize('print "abc')[1]
    assert token.kind == 'UNKNOWN'
    assert token.lexeme == '"'


@pytest.mark.parametrize('source', ['@', '\x00 ~ `', 'café', '"', "'''", '$', '\\'])
def test_tokenize_never_fails(source):
    tokens = tokenize(source)
    assert tokens[-1].kind == 'EOF'


def test_positions_are_one_based():
    tokens = tokenize("set $x = 1\n  print $x")
    printed = tokens[5]
    assert printed.value == 'print'
    assert (printed.line, printed.column) == (2, 3)


def test_multiline_string_advances_lines():
    tokens = tokenize('print "a\nb"\nprint 1')
    second = [t for t in tokens if t.value == 'print'][1]
    assert second.line == 3


def test_empty_source_is_just_eof():
    tokens = tokenize("")
    assert len(tokens) == 1
    assert (tokens[0].kind, tokens[0].line, tokens[0].column) == ('EOF', 1, 1)


def test_relexing_a_lexeme_gives_the_same_token():
    source = 'set $a.b = [1, 2.5, "x\\"y"] # c\nif $a >= 3 && not true { print \'q\' }; call f(1)'
    for token in tokenize(source)[:-1]:
        again = tokenize(source[token.start:token.end])[0]
        assert (again.kind, again.lexeme, again.value) == (token.kind, token.lexeme, token.value)
