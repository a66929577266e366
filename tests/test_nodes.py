# tests/test_nodes.py
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import FakeStore, attendance, utc
from graph.nodes.calendar_check_node import calendar_check_node
from graph.nodes.fetch_node import fetch_node
from graph.nodes.notify_node import notify_node
from graph.nodes.persist_node import persist_node
from graph.nodes.reconcile_node import reconcile_node
from graph.state import initial_state
from services.config_loader import DEFAULT_CONFIG
from services.errors import WriteError
from services.holiday_calendar import HolidayCalendar
from services.models import CheckoutUpdate, Employee, OutcomeAction, WriteReport


def _make_state(**overrides):
    base = initial_state("2026-10-19")
    base.update(overrides)
    return base


@pytest.mark.asyncio
async def test_calendar_check_weekend_skips_holiday_load():
    """土曜日は祝日テーブルを読まずに非稼働日とすること"""
    calendar = MagicMock()
    calendar.load = AsyncMock()

    result = await calendar_check_node(_make_state(today="2026-10-17"), calendar=calendar)

    assert result["is_working_day"] is False
    assert result["holiday_reason"] == "土曜日"
    calendar.load.assert_not_called()


@pytest.mark.asyncio
async def test_calendar_check_holiday():
    """祝日の場合is_working_day=Falseになること"""
    store = FakeStore(holidays=[{"date": "2026-10-19"}])
    result = await calendar_check_node(_make_state(), calendar=HolidayCalendar(store))
    assert result["is_working_day"] is False
    assert result["holiday_reason"] == "祝日"
    assert result["holidays"] == {"2026-10-19"}


@pytest.mark.asyncio
async def test_calendar_check_workday():
    """平日の場合is_working_day=Trueになること"""
    store = FakeStore(holidays=[{"date": "2026-12-25"}])
    result = await calendar_check_node(_make_state(), calendar=HolidayCalendar(store))
    assert result["is_working_day"] is True
    assert result["holiday_reason"] is None


@pytest.mark.asyncio
async def test_calendar_check_delegates_to_is_working_day():
    """稼働日判定は is_working_day に委ねること"""
    store = FakeStore()
    with patch(
        "graph.nodes.calendar_check_node.is_working_day", return_value=False
    ) as mock_is_working_day:
        result = await calendar_check_node(_make_state(), calendar=HolidayCalendar(store))

    mock_is_working_day.assert_called_once()
    assert result["is_working_day"] is False


@pytest.mark.asyncio
async def test_fetch_node_reads_todays_window(roster):
    """当日の窓に入る勤怠だけを取得すること"""
    store = FakeStore(
        users=roster,
        attendance=[
            attendance("A1", "E1", utc(19, 4)),
            attendance("A0", "E2", utc(18, 4)),
        ],
    )
    result = await fetch_node(_make_state(), datastore=store, settings=DEFAULT_CONFIG)

    assert [e.id for e in result["roster"]] == ["E1", "E2", "E3"]
    assert [r.id for r in result["attendance"]] == ["A1"]
    assert result["absences"] == []
    assert store.calls == ["users", "attendance", "absences"]


def test_reconcile_node_uses_configured_checkout_time(roster):
    """自動退勤時刻が設定値（16:30 +05:00）になること"""
    state = _make_state(roster=roster, attendance=[attendance("A1", "E1", utc(19, 4))])
    result = reconcile_node(state, settings=DEFAULT_CONFIG)["result"]

    assert result.checkout_updates[0].check_out == utc(19, 11, 30)
    assert result.outcomes[0].action is OutcomeAction.SCHEDULE_AUTO_CHECKOUT


@pytest.mark.asyncio
async def test_persist_node_returns_report():
    writer = MagicMock()
    writer.apply = AsyncMock(return_value=WriteReport(inserted_absences=2))
    result = await persist_node(_make_state(result=MagicMock()), persistence_writer=writer)
    assert result["report"].inserted_absences == 2


@pytest.mark.asyncio
async def test_persist_node_notifies_applied_checkouts_before_raising():
    """欠勤登録が失敗しても反映済みの自動退勤は本人へ通知すること"""
    update = CheckoutUpdate("A1", "E1", utc(19, 11, 30))
    writer = MagicMock()
    writer.apply = AsyncMock(
        side_effect=WriteError("insert rejected", report=WriteReport(applied_checkouts=[update]))
    )
    checkout_notifier = MagicMock()
    checkout_notifier.notify_all = AsyncMock(return_value=1)
    state = _make_state(roster=[Employee("E1", recipient_token="tok-1")], result=MagicMock())

    with pytest.raises(WriteError):
        await persist_node(state, persistence_writer=writer, checkout_notifier=checkout_notifier)

    checkout_notifier.notify_all.assert_awaited_once_with(["tok-1"])


@pytest.mark.asyncio
async def test_notify_node_sends_summary_and_push():
    """自動退勤の本人通知と集計のSlack通知を行うこと"""
    update = CheckoutUpdate("A1", "E1", utc(19, 11, 30))
    report = WriteReport(applied_checkouts=[update], inserted_absences=2)
    state = _make_state(roster=[Employee("E1", recipient_token="tok-1")], report=report)
    notifier = MagicMock()
    checkout_notifier = MagicMock()
    checkout_notifier.notify_all = AsyncMock(return_value=1)

    result = await notify_node(state, notifier=notifier, checkout_notifier=checkout_notifier)

    assert result["notifications_sent"] == 1
    checkout_notifier.notify_all.assert_awaited_once_with(["tok-1"])
    message = notifier.send.call_args[0][0]
    assert "2026-10-19" in message
    assert "欠勤登録 2件" in message
    assert "自動退勤 1件" in message


@pytest.mark.asyncio
async def test_notify_node_reports_failed_checkouts():
    update = CheckoutUpdate("A9", "E1", utc(19, 11, 30))
    state = _make_state(report=WriteReport(failed_checkouts=[update]))
    notifier = MagicMock()

    await notify_node(state, notifier=notifier)

    assert notifier.send.call_count == 2
    assert "A9" in notifier.send.call_args_list[1][0][0]


@pytest.mark.asyncio
async def test_notify_node_sends_slack_off_the_event_loop():
    """同期のSlack送信はスレッドで実行されること"""
    state = _make_state(report=WriteReport(inserted_absences=1))
    notifier = MagicMock()

    with patch(
        "graph.nodes.notify_node.asyncio.to_thread", new=AsyncMock()
    ) as mock_to_thread:
        await notify_node(state, notifier=notifier)

    mock_to_thread.assert_awaited_once()
    assert mock_to_thread.call_args[0][0] is notifier.send
