# pos_server/domain/checkout/service.py
"""
Settlement engine: turns a cart into a committed sale.

A settlement is a single storage transaction:

1. validate the request (no storage access)
2. pre-check products and stock for a readable early error
3. insert the ledger header
4. per cart line, in cart order: conditionally decrement stock, insert the line
5. commit

Step 4's ``UPDATE ... WHERE stock >= qty`` is what actually prevents
overselling; the pre-check in step 2 can be stale by the time the update
runs. Any failure inside the transaction rolls back every write made by the
call. Loyalty points and the receipt are handled after commit and never undo
a sale.
"""
import asyncio
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_server.core.config import Settings, get_settings
from pos_server.core.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidAmount,
    InvalidDiscount,
    InvalidPaymentMethod,
    PersistenceFailure,
    PriceMismatch,
    ProductNotFound,
    SettlementError,
)
from pos_server.db.models.products import Product
from pos_server.db.repositories.customers import add_loyalty_points
from pos_server.db.repositories.products import decrement_stock, get_products_by_ids
from pos_server.db.repositories.transactions import add_line_item, add_transaction
from .receipts import ReceiptNotifier, build_receipt_notifier
from .schemas import CartLine, PaymentMethod, SettledLine, SettlementRequest, SettlementResult

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(line: CartLine) -> Decimal:
    return to_money(line.unit_price * line.quantity)


class SettlementEngine:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        notifier: Optional[ReceiptNotifier] = None,
    ):
        self.settings = settings or get_settings()
        self.notifier = notifier or build_receipt_notifier(self.settings)

    @staticmethod
    def validate(request: SettlementRequest) -> Tuple[PaymentMethod, Decimal, Decimal, Decimal]:
        """Check the request without touching storage.

        Returns the parsed payment method, subtotal, discount and total.
        """
        if not request.items:
            raise EmptyCart()

        try:
            method = PaymentMethod(str(request.payment_method).strip().lower())
        except ValueError:
            raise InvalidPaymentMethod(request.payment_method) from None

        try:
            subtotal = to_money(sum((line_subtotal(line) for line in request.items), Decimal("0")))
            discount = to_money(request.discount_amount)
        except InvalidOperation:
            # more digits than the decimal context can quantize to cents
            raise InvalidAmount() from None
        if discount < 0 or discount > subtotal:
            raise InvalidDiscount(discount, subtotal)

        return method, subtotal, discount, subtotal - discount

    def _precheck(self, items: List[CartLine], products: Dict[int, Product]) -> None:
        # Cumulative so a product listed on two lines is checked against its total.
        remaining: Dict[int, int] = {}
        for line in items:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFound(line.product_id)

            left = remaining.get(product.id, product.stock)
            if left < line.quantity:
                raise InsufficientStock(product.id, line.quantity, available=product.stock, name=product.name)
            remaining[product.id] = left - line.quantity

            if self.settings.price_policy == "catalog" and line.unit_price != product.price:
                raise PriceMismatch(product.id, line.unit_price, product.price)

    async def _write(
        self,
        db: AsyncSession,
        request: SettlementRequest,
        method: PaymentMethod,
        operator_id: int,
        subtotal: Decimal,
        discount: Decimal,
        total: Decimal,
    ) -> SettlementResult:
        try:
            async with db.begin():
                products = await get_products_by_ids(db, (line.product_id for line in request.items))
                self._precheck(request.items, products)

                txn = await add_transaction(
                    db,
                    cashier_id=operator_id,
                    payment_method=method.value,
                    subtotal=subtotal,
                    discount_amount=discount,
                    total=total,
                    currency=self.settings.currency,
                    customer_email=request.customer_email,
                )

                lines = []
                for number, line in enumerate(request.items, start=1):
                    if not await decrement_stock(db, line.product_id, line.quantity):
                        product = products[line.product_id]
                        raise InsufficientStock(line.product_id, line.quantity, name=product.name)

                    amount = line_subtotal(line)
                    await add_line_item(
                        db,
                        transaction_id=txn.id,
                        line_number=number,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=to_money(line.unit_price),
                        subtotal=amount,
                    )
                    lines.append(
                        SettledLine(
                            line_number=number,
                            product_id=line.product_id,
                            quantity=line.quantity,
                            unit_price=to_money(line.unit_price),
                            subtotal=amount,
                        )
                    )
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceFailure("Failed to record the sale, nothing was charged") from exc

        return SettlementResult(
            transaction_id=txn.id,
            payment_method=method,
            subtotal=subtotal,
            discount_amount=discount,
            total=total,
            currency=self.settings.currency,
            lines=lines,
        )

    async def settle(
        self,
        db: AsyncSession,
        request: SettlementRequest,
        operator_id: int,
    ) -> SettlementResult:
        """Settle ``request`` on behalf of ``operator_id``.

        ``db`` must not have a transaction in progress. Raises a
        ``SettlementError`` subclass on failure, in which case neither stock
        nor ledger has changed.
        """
        log = logger.bind(operator_id=operator_id, lines=len(request.items))
        try:
            method, subtotal, discount, total = self.validate(request)
            log.info("settlement_started", payment_method=method.value, total=str(total))
            result = await asyncio.wait_for(
                self._write(db, request, method, operator_id, subtotal, discount, total),
                timeout=self.settings.settlement_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            log.error("settlement_timed_out", timeout=self.settings.settlement_timeout_seconds)
            raise PersistenceFailure("Settlement timed out, nothing was charged") from exc
        except PersistenceFailure as exc:
            log.error("settlement_failed", error=str(exc.__cause__ or exc))
            raise
        except SettlementError as exc:
            log.warning("settlement_rejected", code=exc.code, error=exc.message)
            raise

        log.info("settlement_committed", transaction_id=str(result.transaction_id), total=str(total))

        if request.customer_email:
            result.points_awarded = await self.accrue_points(db, request.customer_email, total)

        return result

    async def accrue_points(self, db: AsyncSession, email: str, total: Decimal) -> int:
        """Best-effort loyalty accrual for an already committed sale."""
        points = int(total // self.settings.loyalty_points_divisor)
        try:
            async with db.begin():
                await add_loyalty_points(db, email, points)
        except Exception:
            # the sale is committed; a failed accrual must not fail the call
            logger.warning("loyalty_accrual_failed", customer_email=email, points=points, exc_info=True)
            return 0
        return points

    async def send_receipt(self, result: SettlementResult) -> None:
        try:
            await self.notifier.notify(result)
        except Exception:
            # the sale is committed; a missed receipt is reprinted from the ledger
            logger.warning(
                "receipt_notification_failed",
                transaction_id=str(result.transaction_id),
                exc_info=True,
            )


def get_settlement_engine() -> SettlementEngine:
    return SettlementEngine()
