"""Receipt notification sent once a settlement has committed.

Notifiers are best-effort: the engine calls them after commit and only logs
what they raise. The printer bridge is reached over HTTP; without one
configured the receipt is just logged.
"""
from typing import Optional, Protocol

import httpx
import structlog

from pos_server.core.config import Settings, get_settings
from .schemas import SettlementResult

logger = structlog.get_logger(__name__)


class ReceiptNotifier(Protocol):
    async def notify(self, receipt: SettlementResult) -> None:
        ...


class LogReceiptNotifier:
    async def notify(self, receipt: SettlementResult) -> None:
        logger.info(
            "receipt_ready",
            transaction_id=str(receipt.transaction_id),
            lines=len(receipt.lines),
            total=str(receipt.total),
        )


class HttpReceiptNotifier:
    """POSTs the settled transaction to a receipt/printer webhook."""

    def __init__(self, url: str, timeout: float = 2.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def notify(self, receipt: SettlementResult) -> None:
        payload = receipt.model_dump(mode="json")
        if self._client is not None:
            response = await self._client.post(self.url, json=payload, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
        response.raise_for_status()
        logger.info(
            "receipt_sent",
            transaction_id=str(receipt.transaction_id),
            status_code=response.status_code,
        )


def build_receipt_notifier(settings: Optional[Settings] = None) -> ReceiptNotifier:
    settings = settings or get_settings()
    if settings.receipt_webhook_url:
        return HttpReceiptNotifier(settings.receipt_webhook_url, settings.receipt_timeout_seconds)
    return LogReceiptNotifier()
