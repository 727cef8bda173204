import json
import uuid
from decimal import Decimal

import httpx
import pytest

from pos_server.core.config import Settings
from pos_server.domain.checkout.receipts import HttpReceiptNotifier, LogReceiptNotifier
from pos_server.domain.checkout.schemas import PaymentMethod, SettledLine, SettlementResult
from pos_server.domain.checkout.service import SettlementEngine


@pytest.fixture
def receipt() -> SettlementResult:
    return SettlementResult(
        transaction_id=uuid.uuid4(),
        payment_method=PaymentMethod.CASH,
        subtotal=Decimal("4.00"),
        discount_amount=Decimal("0.00"),
        total=Decimal("4.00"),
        currency="USD",
        lines=[SettledLine(line_number=1, product_id=7, quantity=2, unit_price=Decimal("2.00"), subtotal=Decimal("4.00"))],
    )


async def test_http_notifier_posts_receipt(receipt):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = HttpReceiptNotifier("http://printer.local/receipts", client=client)
        await notifier.notify(receipt)

    assert seen[0]["transaction_id"] == str(receipt.transaction_id)
    assert seen[0]["total"] == "4.00"
    assert seen[0]["lines"][0]["product_id"] == 7


async def test_http_notifier_raises_on_error_status(receipt):
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    async with httpx.AsyncClient(transport=transport) as client:
        notifier = HttpReceiptNotifier("http://printer.local/receipts", client=client)
        with pytest.raises(httpx.HTTPStatusError):
            await notifier.notify(receipt)


async def test_engine_swallows_notifier_errors(receipt):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    async with httpx.AsyncClient(transport=transport) as client:
        engine = SettlementEngine(
            settings=Settings(),
            notifier=HttpReceiptNotifier("http://printer.local/receipts", client=client),
        )
        await engine.send_receipt(receipt)


async def test_log_notifier(receipt):
    await LogReceiptNotifier().notify(receipt)


def test_engine_picks_http_notifier_when_configured():
    settings = Settings(receipt_webhook_url="http://printer.local/receipts")

    engine = SettlementEngine(settings=settings)

    assert isinstance(engine.notifier, HttpReceiptNotifier)
