import asyncio

from retroscript.context import HostContext
from retroscript.engine import ScriptEngine
from retroscript.limits import SafetyLimits


def collect(engine):
    lines = []
    engine.on_output(lines.append)
    return lines


def test_handlers_fire_in_registration_order(output):
    script = '''
on ping { print "first" }
on ping { print "second" }
emit ping
print "after"
'''
    assert output(script) == ['first', 'second', 'after']


def test_payload_is_bound_as_event(output):
    script = '''
on user:login {
    print "welcome " + $event.name
}
on data {
    print count($event)
}
emit user:login name="ada"
emit data [1, 2, 3]
'''
    assert output(script) == ['welcome ada', '3']


def test_handler_scope_does_not_leak(output):
    script = '''
on tick {
    set $temp = 1
    print $event.n
}
emit tick n=5
print $temp
print $event
'''
    assert output(script) == ['5', 'undefined', 'undefined']


def test_handler_control_flow_is_discarded(output):
    script = '''
on early {
    return 5
    print "unreachable"
}
emit early
print "ok"
'''
    assert output(script) == ['ok']


def test_emit_waits_for_suspended_handlers(output):
    script = '''
on slow {
    wait 20
    print "handled"
}
emit slow
print "after"
'''
    assert output(script) == ['handled', 'after']


def test_handler_errors_are_reported_not_propagated(engine):
    errors = []
    engine.on_error(errors.append)
    script = '''
on boom {
    print 1 - "x"
}
emit boom
print "after"
'''
    result = asyncio.run(engine.run(script))
    assert result.success
    assert result.output == ['after']
    assert [e.type for e in errors] == ['ScriptTypeError']
    assert errors[0].line == 3


def test_handlers_are_removed_when_the_run_ends(engine, context):
    asyncio.run(engine.run('on ping { print "pong" }'))
    assert context.events.listener_count('ping') == 0


def test_handler_limit_is_fatal(run):
    result = run('try { loop 101 { on x { } } } catch { print "caught" }')
    assert not result.success
    assert result.error.type == 'ScriptHandlerLimitError'
    assert result.output == []


def test_persistent_handlers_outlive_the_body(engine, context):
    lines = collect(engine)

    async def scenario():
        result = await engine.run_persistent('set $hits = 0\non ping {\n  set $hits = $hits + 1\n  print "pong $hits"\n}')
        assert result.session_id in engine.sessions
        await context.events.emit('ping', {})
        await context.events.emit('ping', {})
        variables = engine.get_variables(result.session_id)
        assert engine.stop(result.session_id)
        return result, variables

    result, variables = asyncio.run(scenario())
    assert result.session_id.startswith('persistent_')
    assert lines == ['pong 1', 'pong 2']
    assert variables['hits'] == 2
    assert context.events.listener_count('ping') == 0
    assert engine.sessions == []


def test_stopping_one_session_leaves_others_alone(engine, context):
    lines = collect(engine)

    async def scenario():
        a = await engine.run_persistent('on ping { print "A" }')
        await engine.run_persistent('on ping { print "B" }')
        engine.stop(a.session_id)
        await context.events.emit('ping')

    asyncio.run(scenario())
    assert lines == ['B']


def test_fatal_error_in_handler_ends_the_session():
    context = HostContext.in_memory()
    engine = ScriptEngine(context=context, limits=SafetyLimits(max_loop_iterations=10))
    errors = []
    engine.on_error(errors.append)

    async def scenario():
        result = await engine.run_persistent('on spin {\n  while true { }\n}')
        await context.events.emit('spin')
        return result

    result = asyncio.run(scenario())
    assert [e.type for e in errors] == ['ScriptIterationError']
    assert result.session_id not in engine.sessions
    assert context.events.listener_count('spin') == 0
    engine.close()


def test_fatal_error_in_handler_fails_the_emitting_run(run):
    script = '''
def down($n) { return down($n + 1) }
on deep { call down 0 }
emit deep
print "not reached"
'''
    result = run(script)
    assert not result.success
    assert result.error.type == 'ScriptRecursionError'
    assert result.output == []


def test_host_can_observe_script_events(engine, context):
    seen = []
    context.events.subscribe('app:saved', seen.append)
    asyncio.run(engine.run('emit app:saved file="/a.txt" size=3'))
    assert seen == [{'file': '/a.txt', 'size': 3}]


def test_script_signals_on_the_event_bus(engine, context):
    outputs, completions = [], []
    context.events.subscribe('script:output', outputs.append)
    context.events.subscribe('script:complete', completions.append)
    result = asyncio.run(engine.run('print "hi"'))
    assert outputs == [{'text': 'hi', 'runId': result.run_id}]
    assert completions[0]['success'] is True
