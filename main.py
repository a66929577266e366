"""勤怠突合エージェント - エントリーポイント"""
import argparse
import asyncio
import logging
import os
import signal
import sys
import time
from datetime import datetime, timezone

from graph.graph import build_graph
from graph.state import initial_state
from schedulers.scheduler import AttendanceScheduler
from services.checkout_notifier import CheckoutNotifier
from services.clock import civil_today
from services.config_loader import load_config, reconciliation_timezone, validate_config
from services.errors import ReconciliationError
from services.holiday_calendar import HolidayCalendar
from services.persistence_writer import PersistenceWriter
from services.slack_client import ConsoleNotifier, SlackNotifier
from services.supabase_store import SupabaseStore

logger = logging.getLogger("attendance_reconciler")


def _now() -> datetime:
    """テスト時にモック可能な現在時刻取得"""
    return datetime.now(timezone.utc)


def setup_logging(config: dict):
    logging.basicConfig(
        level=str(config["logging"]["level"]).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    ds_config = config["datastore"]
    store = SupabaseStore(
        url=ds_config["url"],
        key=ds_config["key"],
        tables=ds_config.get("tables"),
        timeout_seconds=ds_config["timeout_seconds"],
    )

    # Slack通知
    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    if slack_config["enabled"] and slack_token:
        notifier = SlackNotifier(token=slack_token, channel=slack_config["notify_channel"])
    else:
        notifier = ConsoleNotifier()

    # 自動退勤の本人通知
    checkout_notifier = None
    notify_config = config["notification"]
    if notify_config["enabled"]:
        checkout_notifier = CheckoutNotifier(
            endpoint=notify_config["endpoint"],
            title=notify_config["title"],
            body=notify_config["body"].format(
                time=config["reconciliation"]["auto_checkout_time"]
            ),
        )

    return store, notifier, checkout_notifier


async def run_reconciliation(config: dict, store, notifier, checkout_notifier=None) -> dict:
    """1日分の突合を実行し、最終状態を返す"""
    tz = reconciliation_timezone(config)
    today = civil_today(_now(), tz).isoformat()
    logger.info("%s の勤怠突合を開始します", today)

    graph = build_graph(
        calendar=HolidayCalendar(store),
        store=store,
        writer=PersistenceWriter(store),
        notifier=notifier,
        checkout_notifier=checkout_notifier,
        config=config,
    )
    try:
        state = await graph.ainvoke(initial_state(today))
    finally:
        await store.close()

    if state["is_working_day"]:
        logger.info("%s の勤怠突合が完了しました", today)
    return state


def main(argv=None):
    """メイン起動処理"""
    parser = argparse.ArgumentParser(description="日次勤怠突合エージェント")
    parser.add_argument("--config", default="config.yaml", help="設定ファイルのパス")
    parser.add_argument("--once", action="store_true", help="1回だけ突合して終了する")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config)
    try:
        validate_config(config)
    except ReconciliationError as e:
        logger.error("設定エラー: %s", e)
        sys.exit(2)

    store, notifier, checkout_notifier = create_services(config)

    if args.once:
        try:
            asyncio.run(run_reconciliation(config, store, notifier, checkout_notifier))
        except ReconciliationError as e:
            logger.error("勤怠突合に失敗しました: %s", e)
            notifier.send_error(str(e))
            sys.exit(1)
        return

    def reconcile_job():
        try:
            asyncio.run(run_reconciliation(config, store, notifier, checkout_notifier))
        except ReconciliationError as e:
            logger.error("勤怠突合に失敗しました: %s", e)
            notifier.send_error(str(e))

    tz = reconciliation_timezone(config)
    run_time = config["reconciliation"]["run_time"]
    scheduler = AttendanceScheduler(run_time=run_time, job_func=reconcile_job, tz=tz)
    for i, reminder in enumerate(config.get("reminders") or []):
        scheduler.add_reminder(i, reminder["time"], lambda msg=reminder["message"]: notifier.send(msg))
    scheduler.start()
    logger.info("毎日 %s (UTC%s) に勤怠突合を実行します", run_time, config["reconciliation"]["utc_offset"])

    # シグナルハンドリング
    def shutdown(signum, frame):
        logger.info("停止中...")
        scheduler.stop()
        logger.info("停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    # メインループ
    logger.info("Ctrl+Cで停止します")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        shutdown(None, None)


if __name__ == "__main__":
    main()
