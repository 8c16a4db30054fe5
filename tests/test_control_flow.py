def test_count_loop_binds_i(output):
    assert output("loop 3 { print $i }") == ['0', '1', '2']


def test_count_loop_with_non_positive_count(output):
    assert output('loop 0 { print "x" }\nloop -2 { print "y" }\nprint "done"') == ['done']


def test_while_with_break_and_continue(output):
    script = '''
set $n = 0
while true {
    set $n = $n + 1
    if $n == 2 { continue }
    if $n > 4 { break }
    print $n
}
print "end $n"
'''
    assert output(script) == ['1', '3', '4', 'end 5']


def test_break_leaves_only_the_innermost_loop(output):
    script = '''
loop 2 {
    set $outer = $i
    loop 3 {
        if $i == 1 { break }
        print "$outer-$i"
    }
}
'''
    assert output(script) == ['0-0', '1-0']


def test_for_each_over_object_keys(output):
    assert output("for $k in {a: 1, b: 2} { print $k }") == ['a', 'b']


def test_for_each_binds_index(output):
    assert output('for $x in ["a", "b"] { print "$i=$x" }') == ['0=a', '1=b']


def test_for_each_iterates_a_snapshot(output):
    script = '''
set $list = [1, 2]
for $x in $list {
    set $list = push($list, $x)
}
print count($list)
'''
    assert output(script) == ['4']


def test_for_each_over_a_number_is_catchable(output):
    script = '''
try {
    for $x in 5 { print $x }
} catch $e {
    print "bad: $e"
}
'''
    assert output(script) == ['bad: Expected an array or object in for loop, got number']


def test_block_bindings_do_not_leak(output):
    script = '''
set $x = 1
if true {
    set $x = 2
    set $inner = 3
}
print $x
print $inner
'''
    assert output(script) == ['2', 'undefined']


def test_top_level_return_ends_the_run(run):
    result = run('print "before"\nreturn 42\nprint "after"')
    assert result.success
    assert result.result == 42
    assert result.output == ['before']


def test_return_inside_loop_inside_function(output):
    script = '''
def find($list, $wanted) {
    for $item in $list {
        if $item == $wanted {
            return $i
        }
    }
    return -1
}
print find([5, 6, 7], 6)
print find([5, 6, 7], 9)
'''
    assert output(script) == ['1', '-1']


def test_recursion(output):
    script = '''
def fib($n) {
    if $n < 2 { return $n }
    return fib($n - 1) + fib($n - 2)
}
print fib(10)
'''
    assert output(script) == ['55']


def test_missing_arguments_are_undefined(output):
    assert output('def f($a, $b) { print $b }\ncall f 1') == ['undefined']


def test_function_without_return_gives_undefined(output):
    assert output('def f() { set $x = 1 }\nprint f()') == ['undefined']


def test_parameters_shadow_globals(output):
    script = '''
set $name = "global"
def greet($name) {
    print "hi $name"
}
call greet "local"
print $name
'''
    assert output(script) == ['hi local', 'global']


def test_closures_capture_the_definition_scope(output):
    script = '''
def make() {
    set $secret = "inner"
    def reveal() {
        return $secret
    }
}
call make
print reveal()
print $secret
'''
    assert output(script) == ['inner', 'undefined']


def test_functions_update_outer_variables(output):
    script = '''
set $total = 0
def add($n) {
    set $total = $total + $n
}
loop 4 { call add $i }
print $total
'''
    assert output(script) == ['6']


def test_user_functions_shadow_builtins(output):
    assert output('def upper($s) { return "mine" }\nprint upper("x")') == ['mine']


def test_unknown_function_is_catchable(output):
    script = '''
try {
    call nope
} catch $e {
    print $e
}
print $e
'''
    assert output(script) == ["Unknown function: 'nope'", 'undefined']


def test_catch_binds_default_error_variable(output):
    script = '''
try {
    print 1 / "x"
} catch {
    print $error
}
'''
    (line,) = output(script)
    assert line.startswith('Expected a number')


def test_try_body_scope_is_discarded(output):
    script = '''
try {
    set $partial = 1
    call missing
} catch {
    print $partial
}
'''
    assert output(script) == ['undefined']


def test_builtin_failures_become_runtime_errors(output):
    script = '''
try {
    set $x = fromJSON("{broken")
} catch $e {
    print $e
}
'''
    (line,) = output(script)
    assert line.startswith("Error in function 'fromJSON':")


def test_assert_failure_is_catchable(output):
    script = '''
try {
    call assert false "must be true"
} catch $e {
    print $e
}
'''
    assert output(script) == ['must be true']


def test_arity_is_checked(run):
    result = run('print pow(2)')
    assert result.error.type == 'ScriptTypeError'
    assert 'pow() expects at least 2 arguments' in result.error.message


def test_errors_report_the_innermost_statement(run):
    script = '''
def inner() {
    print 1 - "x"
}
def outer() {
    call inner
}
call outer
'''
    result = run(script)
    assert result.error.line == 3


def test_count_loop_with_break_and_continue(output):
    script = '''
loop 10 {
    if $i == 1 { continue }
    if $i == 4 { break }
    print $i
}
print "after"
'''
    assert output(script) == ['0', '2', '3', 'after']


def test_division_by_zero_never_enters_catch(output):
    script = '''
try {
    set $r = 10 / 0
    set $m = 10 % 0
    print "$r $m"
} catch $e {
    print "caught $e"
}
'''
    assert output(script) == ['0 0']
