from fastapi import APIRouter, Depends

from app.core.exceptions import Forbidden
from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.payment.payment import PaymentCreate
from app.routes.auth.dependencies import get_current_principal
from app.services.auth.user import normalize_email
from app.services.payment.ledger import LedgerService
from app.utils.response import success_response, serialize_document

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("")
async def create_payment(
    payment_data: PaymentCreate,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """
    Record a successful payment and register the payer.

    1. Save payment
    2. Increase participants
    3. Add the contest to the user's participated contests
    """
    payer = normalize_email(payment_data.email) if payment_data.email else principal.email
    if payer != principal.email:
        raise Forbidden("You can only pay for yourself")

    payment = await LedgerService(database).register(
        contest_id=payment_data.contest_id,
        payer_email=payer,
        amount=payment_data.amount,
        transaction_id=payment_data.transaction_id
    )
    return success_response(
        message="Payment recorded successfully",
        data={"payment": serialize_document(payment)},
        status_code=201
    )


@router.get("/me")
async def get_my_payments(
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Payment history of the caller"""
    payments = await LedgerService(database).payments_for_user(principal.email)
    return success_response(
        message="Payments retrieved successfully",
        data={"payments": [serialize_document(p) for p in payments], "total": len(payments)}
    )
