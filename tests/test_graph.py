# tests/test_graph.py
from graph.graph import route_after_calendar_check, build_graph
from graph.state import initial_state


def _make_state(**overrides):
    base = initial_state("2026-10-19")
    base.update(overrides)
    return base


def test_route_calendar_not_working_day():
    """非稼働日の場合endへ"""
    state = _make_state(is_working_day=False)
    assert route_after_calendar_check(state) == "end"


def test_route_calendar_working_day():
    """稼働日の場合fetchへ"""
    state = _make_state(is_working_day=True)
    assert route_after_calendar_check(state) == "fetch"


def test_build_graph():
    """グラフが正常にビルドできること"""
    graph = build_graph()
    assert graph is not None


def test_initial_state_keys():
    state = initial_state("2026-10-19")
    assert state["today"] == "2026-10-19"
    assert state["is_working_day"] is False
    assert state["result"] is None
    assert state["holidays"] == set()
