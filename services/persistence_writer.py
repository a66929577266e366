# services/persistence_writer.py
import logging

from services.datastore_interface import DataStoreInterface
from services.errors import WriteError
from services.models import ReconciliationResult, WriteReport

logger = logging.getLogger(__name__)


class PersistenceWriter:
    """突合結果をデータストアへ反映する

    自動退勤は1件ずつ（失敗しても残りを続行）、欠勤は1回のバッチで登録する。
    欠勤バッチの失敗は WriteError として呼び出し元に伝える（反映済みの自動退勤は
    e.report に載せる）。リトライはしない。
    """

    def __init__(self, store: DataStoreInterface):
        self._store = store

    async def apply(self, result: ReconciliationResult) -> WriteReport:
        report = WriteReport()

        if result.checkout_updates:
            logger.info("自動退勤 %d 件を反映します", len(result.checkout_updates))
        else:
            logger.info("自動退勤の対象はありません")

        for update in result.checkout_updates:
            try:
                await self._store.update_checkout(update)
            except WriteError as e:
                logger.error(
                    "勤怠 %s (従業員 %s) の自動退勤に失敗しました: %s",
                    update.record_id,
                    update.employee_id,
                    e,
                )
                report.failed_checkouts.append(update)
                continue
            logger.info("勤怠 %s (従業員 %s) を自動退勤しました", update.record_id, update.employee_id)
            report.applied_checkouts.append(update)

        if not result.absence_inserts:
            logger.info("欠勤登録の対象はありません")
            return report

        employee_ids = [row.employee_id for row in result.absence_inserts]
        try:
            await self._store.insert_absences(result.absence_inserts)
        except WriteError as e:
            logger.error("欠勤 %d 件の一括登録に失敗しました %s: %s", len(employee_ids), employee_ids, e)
            e.report = report
            raise
        report.inserted_absences = len(result.absence_inserts)
        logger.info("欠勤 %d 件を登録しました: %s", report.inserted_absences, employee_ids)
        return report
