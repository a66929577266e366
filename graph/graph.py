# graph/graph.py
from functools import partial

from langgraph.graph import StateGraph, END

from graph.state import ReconciliationState


def route_after_calendar_check(state: ReconciliationState) -> str:
    if not state["is_working_day"]:
        return "end"
    return "fetch"


def build_graph(
    calendar=None,
    store=None,
    writer=None,
    notifier=None,
    checkout_notifier=None,
    config=None,
):
    """LangGraphのグラフを構築して返す

    各ノード関数はサービス依存を持つため、functools.partialでラップして
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from graph.nodes.calendar_check_node import calendar_check_node
    from graph.nodes.fetch_node import fetch_node
    from graph.nodes.reconcile_node import reconcile_node
    from graph.nodes.persist_node import persist_node
    from graph.nodes.notify_node import notify_node

    calendar_check_wrapped = partial(calendar_check_node, calendar=calendar)
    fetch_wrapped = partial(fetch_node, datastore=store, settings=config)
    reconcile_wrapped = partial(reconcile_node, settings=config)
    persist_wrapped = partial(
        persist_node, persistence_writer=writer, checkout_notifier=checkout_notifier
    )
    notify_wrapped = partial(
        notify_node, notifier=notifier, checkout_notifier=checkout_notifier
    )

    workflow = StateGraph(ReconciliationState)

    workflow.add_node("calendar_check", calendar_check_wrapped)
    workflow.add_node("fetch", fetch_wrapped)
    workflow.add_node("reconcile", reconcile_wrapped)
    workflow.add_node("persist", persist_wrapped)
    workflow.add_node("notify", notify_wrapped)

    workflow.set_entry_point("calendar_check")

    workflow.add_conditional_edges(
        "calendar_check",
        route_after_calendar_check,
        {"fetch": "fetch", "end": END},
    )

    workflow.add_edge("fetch", "reconcile")
    workflow.add_edge("reconcile", "persist")
    workflow.add_edge("persist", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()
