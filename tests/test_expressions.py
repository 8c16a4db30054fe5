import pytest


@pytest.mark.parametrize('source, expected', [
    ('10 / 2', '5'),
    ('7 / 2', '3.5'),
    ('1 / 0', '0'),
    ('5 % 0', '0'),
    ('-7 % 3', '-1'),
    ('7 % -3', '1'),
    ('2 + 3 * 4', '14'),
    ('(2 + 3) * 4', '20'),
    ('0.1 + 0.2 > 0.3', 'true'),
    ('3.0', '3'),
    ('2.50', '2.5'),
    ('"2" * 3', '6'),
    ('null + 1', '1'),
    ('true + 1', '2'),
    ('"a" + 1', 'a1'),
    ('1 + "a"', '1a'),
    ('"n: " + null', 'n: null'),
    ('[1] + [2]', '[1,2]'),
    ('{a: [1, true, null]}', '{"a":[1,true,null]}'),
    ('1 == "1"', 'false'),
    ('1 == true', 'false'),
    ('1 == 1.0', 'true'),
    ('[1, {a: 2}] == [1, {a: 2}]', 'true'),
    ('{a: 1} != {a: 2}', 'true'),
    ('null == null', 'true'),
    ('"apple" < "banana"', 'true'),
    ('2 < "10"', 'true'),
    ('1 < 2 == true', 'true'),
    ('0 || "x"', 'x'),
    ('"" && 1', ''),
    ('1 && 2', '2'),
    ('0 && crash()', '0'),
    ('1 || crash()', '1'),
    ('not 0', 'true'),
    ('!"x"', 'false'),
    ('-(2 + 3)', '-5'),
    ('"hey".length', '3'),
    ('[1, 2, 3].length', '3'),
    ('[1, 2][5]', 'undefined'),
    ('{a: 1}.b', 'undefined'),
    ('{a: {b: 2}}["a"].b', '2'),
])
def test_expression_values(output, source, expected):
    assert output(f"print {source}") == [expected]


def test_truthiness(output):
    script = '''
set $values = [null, false, 0, "", [], {}, "0", 1, -1]
for $v in $values {
    if $v { print "T" } else { print "F" }
}
'''
    assert output(script) == ['F', 'F', 'F', 'F', 'F', 'T', 'T', 'T', 'T']


def test_interpolation_is_lenient(output):
    script = '''
set $n = 3
set $z = null
print "n=$n, missing=$nope, nul=$z, list=$list"
'''
    assert output(script, variables={'list': [1, 2]}) == ['n=3, missing=$nope, nul=, list=[1,2]']


def test_unbound_and_missing_reads(output):
    script = '''
print $nothing
set $o = {}
print $o.a.b
set $s = null
print $s.x
'''
    assert output(script) == ['undefined', 'undefined', 'undefined']


def test_arithmetic_on_non_numbers_is_a_type_error(run):
    result = run('print "abc" - 1')
    assert not result.success
    assert result.error.type == 'ScriptTypeError'
    assert result.error.line == 1


def test_uncomparable_operands(run):
    result = run('print [1] < 2')
    assert result.error.type == 'ScriptTypeError'
    assert 'Cannot compare' in result.error.message


def test_nested_assignment_creates_objects(output):
    script = '''
set $cfg.window.width = 300
set $list = [1, 2]
set $list[2] = 3
set $list[0] = "one"
print $cfg
print $list
'''
    assert output(script) == ['{"window":{"width":300}}', '["one",2,3]']


def test_assignment_out_of_range(run):
    result = run('set $list = []\nset $list[3] = 1')
    assert result.error.type == 'ScriptTypeError'
    assert result.error.line == 2


def test_field_assignment_on_non_object(run):
    result = run('set $n = 5\nset $n.x = 1')
    assert result.error.type == 'ScriptTypeError'


def test_numbers_overflow_to_infinity(output):
    script = '''
set $x = 1
loop 400 { set $x = $x * 10 }
try {
    print $x / 3
    print $x * 1.5
    print -$x
    print $x - $x
    print $x % 3
} catch {
    print "caught"
}
print $x
'''
    assert output(script) == ['Infinity', 'Infinity', '-Infinity', 'NaN', 'NaN', 'Infinity']


def test_large_integers_lose_precision_like_doubles(output):
    assert output('print 9007199254740993 * 1\nprint 100000000000 * 100000000000') == [
        '9007199254740992', '1e+22']


def test_rounding_builtins_pass_infinity_through(output):
    script = 'set $big = 1\nloop 400 { set $big = $big * 10 }\nprint floor($big)\nprint round(-$big)'
    assert output(script) == ['Infinity', '-Infinity']
