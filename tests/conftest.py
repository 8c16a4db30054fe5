import pytest

from retroscript.context import HostContext
from retroscript.engine import ScriptEngine, run_program


@pytest.fixture
def context():
    return HostContext.in_memory()


@pytest.fixture
def engine(context):
    engine = ScriptEngine(context=context)
    yield engine
    engine.close()


@pytest.fixture
def run():
    """Run a script on a fresh in-memory host and return the RunResult."""
    def run_script(source, **options):
        context = options.pop('context', None) or HostContext.in_memory()
        return run_program(source, context=context, **options)
    return run_script


@pytest.fixture
def output(run):
    """Run a script that must succeed and return its printed lines."""
    def output_of(source, **options):
        result = run(source, **options)
        assert result.success, result.error
        return result.output
    return output_of
