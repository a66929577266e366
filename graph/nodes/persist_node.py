# graph/nodes/persist_node.py
import logging

from graph.nodes.notify_node import notify_checkouts
from graph.state import ReconciliationState
from services.checkout_notifier import CheckoutNotifier
from services.errors import WriteError
from services.persistence_writer import PersistenceWriter

logger = logging.getLogger(__name__)


async def persist_node(
    state: ReconciliationState,
    persistence_writer: PersistenceWriter = None,
    checkout_notifier: CheckoutNotifier = None,
) -> dict:
    """突合結果をデータストアへ書き込むノード

    欠勤の一括登録に失敗しても、反映済みの自動退勤は通知してから例外を伝える。
    """
    try:
        report = await persistence_writer.apply(state["result"])
    except WriteError as e:
        if e.report is not None:
            sent = await notify_checkouts(state["roster"], e.report, checkout_notifier)
            logger.info("欠勤登録失敗前に反映した自動退勤 %d 件を通知しました", sent)
        raise
    return {"report": report}
