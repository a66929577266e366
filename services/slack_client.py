import logging
import sys

from slack_sdk import WebClient
from slack_sdk.errors import SlackClientError

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[勤怠通知] {message}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[勤怠エラー] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる通知サービス"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            self._client = WebClient(token=token)

    def send(self, message: str) -> bool:
        """メッセージ送信（トークン未設定時はフォールバック）"""
        if self._client is None:
            return self._fallback.send(message)

        try:
            self._client.chat_postMessage(channel=self._channel, text=message)
            return True
        except (SlackClientError, OSError) as e:
            logger.warning("Slack通知に失敗しました: %s", e)
            return False

    def send_error(self, error: str) -> bool:
        """エラー通知"""
        message = f"❌ 勤怠の自動突合に失敗しました。手動確認をお願いします（エラー: {error}）"
        return self.send(message)
