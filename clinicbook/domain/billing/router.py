"""Billing router - FastAPI endpoints for invoices and payments"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...directory import Directory, get_directory
from ...models_invoice import PaymentStatus
from ...shared.validators import to_local_naive
from .schemas import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceUpdate,
    PatientPaidTotalResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentTotalResponse,
)
from .service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["Billing"])


def get_billing_service(
    db: Session = Depends(get_db),
    directory: Directory = Depends(get_directory),
) -> BillingService:
    """Dependency injection for BillingService"""
    return BillingService(db, directory)


# ============================================================================
# INVOICES
# ============================================================================


@router.get("/invoices", response_model=list[InvoiceResponse])
async def get_invoices(service: BillingService = Depends(get_billing_service)):
    """Get all invoices"""
    return [InvoiceResponse.from_model(i) for i in service.get_invoices()]


@router.get("/invoices/overdue", response_model=list[InvoiceResponse])
async def get_overdue_invoices(service: BillingService = Depends(get_billing_service)):
    """Get unpaid invoices whose due date has passed"""
    return [InvoiceResponse.from_model(i) for i in service.get_overdue_invoices()]


@router.get("/invoices/number/{invoice_number}", response_model=InvoiceResponse)
async def get_invoice_by_number(
    invoice_number: str,
    service: BillingService = Depends(get_billing_service),
):
    return InvoiceResponse.from_model(service.get_invoice_by_number(invoice_number))


@router.get("/invoices/patient/{patient_id}", response_model=list[InvoiceResponse])
async def get_invoices_by_patient(
    patient_id: int,
    service: BillingService = Depends(get_billing_service),
):
    return [InvoiceResponse.from_model(i) for i in service.get_invoices_by_patient(patient_id)]


@router.get("/invoices/status/{payment_status}", response_model=list[InvoiceResponse])
async def get_invoices_by_status(
    payment_status: PaymentStatus,
    service: BillingService = Depends(get_billing_service),
):
    return [InvoiceResponse.from_model(i) for i in service.get_invoices_by_status(payment_status)]


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    service: BillingService = Depends(get_billing_service),
):
    return InvoiceResponse.from_model(service.get_invoice(invoice_id))


@router.post("/invoices", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    service: BillingService = Depends(get_billing_service),
):
    """Raise a new invoice for a patient, optionally tied to an appointment"""
    return InvoiceResponse.from_model(service.create_invoice(data))


@router.put("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    service: BillingService = Depends(get_billing_service),
):
    """Update an invoice; a supplied item list replaces the current one"""
    return InvoiceResponse.from_model(service.update_invoice(invoice_id, data))


@router.delete("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: int,
    service: BillingService = Depends(get_billing_service),
):
    """Cancel an invoice (the record and its payments are kept)"""
    return InvoiceResponse.from_model(service.cancel_invoice(invoice_id))


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("/invoices/{invoice_id}/payments", response_model=list[PaymentResponse])
async def get_invoice_payments(
    invoice_id: int,
    service: BillingService = Depends(get_billing_service),
):
    return [PaymentResponse.from_model(p) for p in service.get_payments_by_invoice(invoice_id)]


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: PaymentCreate,
    service: BillingService = Depends(get_billing_service),
):
    """Record a payment against an invoice"""
    return PaymentResponse.from_model(service.record_payment(data))


# ============================================================================
# REPORTING
# ============================================================================


@router.get("/payments/summary", response_model=PaymentTotalResponse)
async def get_payment_summary(
    start: datetime,
    end: datetime,
    service: BillingService = Depends(get_billing_service),
):
    """Total collected between two instants (inclusive)"""
    start, end = to_local_naive(start), to_local_naive(end)
    return PaymentTotalResponse(start=start, end=end, total=service.get_total_payments(start, end))


@router.get("/patients/{patient_id}/paid-total", response_model=PatientPaidTotalResponse)
async def get_patient_paid_total(
    patient_id: int,
    service: BillingService = Depends(get_billing_service),
):
    """Sum of a patient's fully paid invoices"""
    return PatientPaidTotalResponse(
        patientId=patient_id, totalPaid=service.get_total_paid_by_patient(patient_id)
    )


__all__ = [
    "router",
    "get_billing_service",
]
