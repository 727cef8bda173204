# pos_server/api/v1/routes_checkout.py
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pos_server.api.deps import get_operator_id
from pos_server.core.errors import NotFoundError
from pos_server.db.base import get_db
from pos_server.db.repositories.transactions import (
    get_line_items_for_transaction,
    get_transaction_by_id,
    list_transactions,
)
from pos_server.domain.checkout.schemas import (
    LineItemOut,
    SettlementRequest,
    SettlementResult,
    TransactionDetailOut,
    TransactionOut,
)
from pos_server.domain.checkout.service import SettlementEngine, get_settlement_engine


router = APIRouter(
    prefix="/api/v1/transactions",
    tags=["transactions"],
    dependencies=[Depends(get_operator_id)],
)


def _transaction_out(txn, cashier_name, schema=TransactionOut, **extra):
    data = TransactionOut.model_validate(txn).model_dump()
    data["cashier_name"] = cashier_name
    return schema(**data, **extra)


@router.post("", response_model=SettlementResult, status_code=status.HTTP_201_CREATED)
async def settle_endpoint(
    payload: SettlementRequest,
    background_tasks: BackgroundTasks,
    operator_id: int = Depends(get_operator_id),
    db: AsyncSession = Depends(get_db),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    result = await engine.settle(db, payload, operator_id)
    # after the response; a failed receipt never affects the sale
    background_tasks.add_task(engine.send_receipt, result)
    return result


@router.get("", response_model=List[TransactionOut])
async def list_transactions_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
):
    rows = await list_transactions(db, page=page, limit=limit, start_date=start_date, end_date=end_date)
    return [_transaction_out(txn, cashier_name) for txn, cashier_name in rows]


@router.get("/{transaction_id}", response_model=TransactionDetailOut)
async def get_transaction_endpoint(
    transaction_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    found = await get_transaction_by_id(db, transaction_id)
    if found is None:
        raise NotFoundError("Transaction not found")
    txn, cashier_name = found

    items = [
        LineItemOut(
            line_number=line.line_number,
            product_id=line.product_id,
            name=name,
            barcode=barcode,
            quantity=line.quantity,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
        )
        for line, name, barcode in await get_line_items_for_transaction(db, transaction_id)
    ]
    return _transaction_out(txn, cashier_name, schema=TransactionDetailOut, items=items)
