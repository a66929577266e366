import asyncio
import logging
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


class CheckoutNotifier:
    """自動退勤を本人にプッシュ通知するHTTPエンドポイント呼び出し

    送信失敗はログに残すだけで、突合結果には影響させない。
    """

    def __init__(self, endpoint: str, title: str, body: str, timeout_seconds: float = 10):
        self._endpoint = endpoint
        self._title = title
        self._body = body
        self._timeout = timeout_seconds

    async def notify(self, session: aiohttp.ClientSession, recipient_token: str) -> bool:
        payload = {
            "title": self._title,
            "body": self._body,
            "recipientToken": recipient_token,
        }
        try:
            async with session.post(self._endpoint, json=payload) as response:
                if response.status >= 400:
                    logger.warning("自動退勤通知が失敗しました (HTTP %d)", response.status)
                    return False
                return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("自動退勤通知の送信に失敗しました: %s", e)
            return False

    async def notify_all(self, tokens: list[Optional[str]]) -> int:
        """トークンを持つ従業員にだけ送信し、成功件数を返す"""
        targets = [token for token in tokens if token]
        if not targets:
            return 0
        sent = 0
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self._timeout)
        ) as session:
            for token in targets:
                if await self.notify(session, token):
                    sent += 1
        logger.info("自動退勤通知 %d/%d 件を送信しました", sent, len(targets))
        return sent
