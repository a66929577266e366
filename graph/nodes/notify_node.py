# graph/nodes/notify_node.py
import asyncio
import logging

from graph.state import ReconciliationState
from services.checkout_notifier import CheckoutNotifier
from services.models import Employee, WriteReport

logger = logging.getLogger(__name__)


MESSAGES = {
    "summary": (
        "📋 {today} の勤怠突合が完了しました"
        "（欠勤登録 {absent}件・自動退勤 {checkout}件）"
    ),
    "checkout_failed": "⚠️ 自動退勤に失敗した勤怠記録があります: {records}",
}


async def notify_checkouts(
    roster: list[Employee],
    report: WriteReport,
    checkout_notifier: CheckoutNotifier = None,
) -> int:
    """反映済みの自動退勤を本人に通知し、送信件数を返す"""
    if checkout_notifier is None or not report.applied_checkouts:
        return 0
    tokens_by_employee = {e.id: e.recipient_token for e in roster}
    tokens = [tokens_by_employee.get(u.employee_id) for u in report.applied_checkouts]
    return await checkout_notifier.notify_all(tokens)


async def notify_node(
    state: ReconciliationState,
    notifier=None,
    checkout_notifier: CheckoutNotifier = None,
) -> dict:
    """自動退勤の本人通知と、突合結果のSlack通知を行うノード"""
    report = state["report"]
    sent = await notify_checkouts(state["roster"], report, checkout_notifier)

    # Slack送信は同期APIのためスレッドで実行する
    if notifier is not None:
        await asyncio.to_thread(
            notifier.send,
            MESSAGES["summary"].format(
                today=state["today"],
                absent=report.inserted_absences,
                checkout=len(report.applied_checkouts),
            ),
        )
        if report.failed_checkouts:
            records = ", ".join(u.record_id for u in report.failed_checkouts)
            await asyncio.to_thread(
                notifier.send, MESSAGES["checkout_failed"].format(records=records)
            )

    return {"notifications_sent": sent}
