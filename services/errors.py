from typing import Optional

from services.models import WriteReport


class ReconciliationError(Exception):
    """勤怠突合処理の基底例外"""


class ConfigurationError(ReconciliationError):
    """必須設定の欠落・不正（フェッチ前に中断）"""


class DataSourceError(ReconciliationError):
    """データストア読み込み失敗（書き込みは一切行わない）"""


class WriteError(ReconciliationError):
    """データストア書き込み失敗

    欠勤バッチ失敗時は、それまでに反映済みの書き込み結果を report に持つ。
    """

    def __init__(self, message: str, report: Optional[WriteReport] = None):
        super().__init__(message)
        self.report = report
