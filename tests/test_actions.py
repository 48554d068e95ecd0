import pytest

from restpipe import (
    PHASE_ORDER,
    Action,
    ConfigurationError,
    Phase,
    after_convert,
    before_query,
    on_run,
    tag,
)

from conftest import make_context, run_async


def noop(context):
    return None


def test_phase_order_is_fixed():
    assert [phase.value for phase in PHASE_ORDER] == [
        "before-query",
        "on-query",
        "after-query",
        "before-run",
        "on-run",
        "after-run",
        "before-convert",
        "on-convert",
        "after-convert",
    ]


@pytest.mark.parametrize("phase", [Phase.BEFORE_RUN, "before-run", "before_run", "BEFORE_RUN"])
def test_tag_accepts_enum_and_string_forms(phase):
    action = tag(phase, noop)
    assert action == Action(phase=Phase.BEFORE_RUN, fn=noop)


@pytest.mark.parametrize("phase", ["before-save", "", None, 3])
def test_tag_rejects_unknown_phase(phase):
    with pytest.raises(ConfigurationError):
        tag(phase, noop)


def test_tag_rejects_non_callable():
    with pytest.raises(ConfigurationError):
        tag(Phase.ON_QUERY, "not a function")
    with pytest.raises(ConfigurationError):
        tag(Phase.ON_QUERY, [noop, 42])
    with pytest.raises(ConfigurationError):
        tag(Phase.ON_QUERY, [])


def test_action_is_immutable():
    action = on_run(noop)
    with pytest.raises(AttributeError):
        action.phase = Phase.ON_QUERY


def test_taggers_bind_their_phase():
    assert before_query(noop).phase is Phase.BEFORE_QUERY
    assert after_convert(noop).phase is Phase.AFTER_CONVERT


def test_list_of_callables_runs_in_order():
    seen = []

    def first(context):
        seen.append("first")

    async def second(context):
        seen.append("second")
        return context

    action = before_query([first, second])
    assert action.name == "first+second"

    run_async(action.fn(make_context()))
    assert seen == ["first", "second"]


def test_single_callable_list_is_not_wrapped():
    assert before_query([noop]).fn is noop
