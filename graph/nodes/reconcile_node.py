# graph/nodes/reconcile_node.py
from datetime import date

from graph.state import ReconciliationState
from services.clock import checkout_instant, parse_time
from services.config_loader import reconciliation_timezone
from services.reconciliation import reconcile


def reconcile_node(state: ReconciliationState, settings: dict = None) -> dict:
    """ロスターと当日記録を突き合わせ、書き込み対象を決定するノード"""
    checkout_at = checkout_instant(
        date.fromisoformat(state["today"]),
        parse_time(settings["reconciliation"]["auto_checkout_time"]),
        reconciliation_timezone(settings),
    )
    result = reconcile(state["roster"], state["attendance"], state["absences"], checkout_at)
    return {"result": result}
