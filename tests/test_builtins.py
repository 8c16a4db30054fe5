import asyncio

import pytest

from retroscript.builtin_function import BuiltinFunction, BuiltinTable
from retroscript.std import standard_functions


@pytest.mark.parametrize('source, expected', [
    # numeric
    ('abs(-3)', '3'),
    ('round(2.5)', '3'),
    ('round(1.234, 2)', '1.23'),
    ('floor(-1.5)', '-2'),
    ('ceil(1.2)', '2'),
    ('min(3, 1, 2)', '1'),
    ('max([4, 9])', '9'),
    ('pow(2, 10)', '1024'),
    ('sqrt(16)', '4'),
    ('clamp(15, 0, 10)', '10'),
    ('sum([1, 2, 3])', '6'),
    ('randomInt(4, 4)', '4'),
    # strings
    ('upper("abc")', 'ABC'),
    ('lower("ABC")', 'abc'),
    ('trim("  x  ")', 'x'),
    ('length("four")', '4'),
    ('split("a,b", ",")', '["a","b"]'),
    ('split("ab")', '["a","b"]'),
    ('join([1, 2, 3])', '1,2,3'),
    ('join(["a", "b"], " + ")', 'a + b'),
    ('replace("a-b-c", "-", "+")', 'a+b+c'),
    ('substring("hello", 1, 3)', 'el'),
    ('substring("hello", 3, 1)', 'el'),
    ('substring("hello", 2)', 'llo'),
    ('contains("hello", "ell")', 'true'),
    ('startsWith("hello", "he")', 'true'),
    ('endsWith("hello", "lo")', 'true'),
    ('indexOf("abc", "c")', '2'),
    ('indexOf([1, 2], 3)', '-1'),
    ('repeat("ab", 3)', 'ababab'),
    ('padStart("5", 3, "0")', '005'),
    ('padEnd("ab", 4)', 'ab  '),
    # collections
    ('count([1, 2])', '2'),
    ('count({a: 1})', '1'),
    ('push([1], 2, 3)', '[1,2,3]'),
    ('pop([1, 2])', '2'),
    ('shift([1, 2])', '1'),
    ('unshift([2], 1)', '[1,2]'),
    ('slice([1, 2, 3], 1)', '[2,3]'),
    ('slice("hello", 1, 3)', 'el'),
    ('reverse([1, 2])', '[2,1]'),
    ('reverse("abc")', 'cba'),
    ('sort([3, 1, 2])', '[1,2,3]'),
    ('sort([{n: 2}, {n: 1}], "n")', '[{"n":1},{"n":2}]'),
    ('unique([1, 1, "1"])', '[1,"1"]'),
    ('range(3)', '[0,1,2]'),
    ('range(1, 7, 2)', '[1,3,5]'),
    ('range(3, 0, -1)', '[3,2,1]'),
    ('first([7, 8])', '7'),
    ('last([7, 8])', '8'),
    ('first([])', 'undefined'),
    ('includes([1, 2], 2)', 'true'),
    ('includes([1, 2], "2")', 'false'),
    # structured values
    ('keys({a: 1, b: 2})', '["a","b"]'),
    ('values({a: 1, b: 2})', '[1,2]'),
    ('has({a: 1}, "a")', 'true'),
    ('get({a: {b: 2}}, "a.b")', '2'),
    ('get({}, "a.b", "none")', 'none'),
    ('merge({a: 1}, {b: 2}, {a: 3})', '{"a":3,"b":2}'),
    ('entries({a: 1})', '[["a",1]]'),
    # types
    ('typeof([])', 'array'),
    ('typeof({})', 'object'),
    ('typeof(null)', 'null'),
    ('typeof($missing)', 'undefined'),
    ('typeof("s")', 'string'),
    ('typeof(true)', 'boolean'),
    ('isNumber(1.5)', 'true'),
    ('isString(1)', 'false'),
    ('isArray([])', 'true'),
    ('isObject({})', 'true'),
    ('isNull(null)', 'true'),
    ('toNumber("42")', '42'),
    ('toNumber("x")', 'NaN'),
    ('toInt("7.9")', '7'),
    ('toInt("x")', '0'),
    ('toString(12) + 1', '121'),
    ('toBoolean("")', 'false'),
    # structured data
    ('toJSON({a: 1})', '{"a":1}'),
    ('fromJSON("{\\"a\\": [1, 2.0]}").a[1]', '2'),
    # dates
    ('formatDate("2024-03-05T07:08:09", "DD/MM/YYYY HH:mm:ss")', '05/03/2024 07:08:09'),
    ('length(date())', '10'),
    ('length(time())', '8'),
    ('isNumber(timestamp())', 'true'),
    # diagnostics and dialogs
    ('inspect("x")', 'string "x"'),
    ('inspect(3)', 'number 3'),
    ('assert(1)', 'true'),
    ('validateInput("a@b.co", "email")', 'true'),
    ('validateInput("nope", "email")', 'false'),
    ('validateInput("12.5", "number")', 'true'),
    ('validateInput(" ", "nonempty")', 'false'),
])
def test_builtin_values(output, source, expected):
    assert output(f"print {source}") == [expected]


def test_push_mutates_in_place(output):
    assert output('set $a = [1]\ncall push $a 2\nprint $a') == ['[1,2]']


def test_range_is_capped(run):
    result = run('print range(1000000)')
    assert result.error.type == 'ScriptRuntimeError'


def test_type_errors_from_builtins_are_catchable(output):
    assert output('try { call join "x" } catch $e { print $e }') == ['join() expects an array']


def test_json_round_trip(output):
    script = '''
set $data = {name: "Ada", tags: ["a", "b"], nested: {n: 1.5, ok: true, none: null}}
set $copy = fromJSON(toJSON($data))
print $copy == $data
print toJSON([1, 2], 2)
'''
    assert output(script) == ['true', '[\n  1,\n  2\n]']


def test_builtin_table_is_copy_on_write():
    table = BuiltinTable(standard_functions())
    before = table._functions
    table.define(BuiltinFunction('extra', None, lambda args: 1))
    assert 'extra' in table
    assert 'extra' not in before
    assert table.get('upper').group == 'string'
    assert 'upper' in table.names()
    assert all(f.group == 'numeric' for f in table.group('numeric'))


def test_every_documented_builtin_is_registered():
    names = set(BuiltinTable(standard_functions()).names())
    for name in ('abs round floor ceil min max pow sqrt random randomInt clamp sum '
                 'upper lower trim length split join replace substring contains startsWith '
                 'endsWith indexOf repeat padStart padEnd count push pop shift unshift slice '
                 'reverse sort unique range first last includes keys values has get merge '
                 'entries typeof isNumber isString isArray isObject isNull toNumber toInt '
                 'toString toBoolean now timestamp date time formatDate toJSON fromJSON '
                 'inspect assert').split():
        assert name in names


def test_wrapped_host_functions(engine):
    engine.define_function('double', lambda x: x * 2)

    async def fetch(name):
        await asyncio.sleep(0)
        return f"data for {name}"

    result = asyncio.run(engine.run('print double(21)\nprint fetch("ada")',
                                    functions={'fetch': fetch}))
    assert result.output == ['42', 'data for ada']


def test_run_local_functions_do_not_leak_between_runs(engine):
    asyncio.run(engine.run('print 1', functions={'secret': lambda: 1}))
    result = asyncio.run(engine.run('print secret()'))
    assert result.error.type == 'ScriptReferenceError'


def test_host_function_errors_are_wrapped(engine):
    def broken():
        raise RuntimeError("disk on fire")

    result = asyncio.run(engine.run('try { call broken } catch $e { print $e }',
                                    functions={'broken': broken}))
    assert result.output == ["Error in function 'broken': disk on fire"]


def test_recursion_inside_host_functions_is_fatal(engine):
    def runaway():
        raise RecursionError("maximum recursion depth exceeded")

    result = asyncio.run(engine.run('try { call runaway } catch { print "caught" }',
                                    functions={'runaway': runaway}))
    assert result.error.type == 'ScriptRecursionError'
    assert result.output == []
