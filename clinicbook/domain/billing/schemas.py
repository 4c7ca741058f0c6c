"""Billing domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ValidationInfo, field_validator

from ...models_invoice import PaymentStatus
from ...shared.validators import validate_money
from ...utils.sanitization import sanitize_text
from .ledger import line_total, remaining_balance, to_money

# Column widths in models_invoice
DESCRIPTION_MAX_LENGTH = 500
PAYMENT_METHOD_MAX_LENGTH = 50
REFERENCE_MAX_LENGTH = 255


class InvoiceItemCreate(BaseModel):
    """Schema for one billable line"""

    description: str
    amount: Decimal  # Unit price
    quantity: int = 1

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if cleaned is None:
            raise ValueError("description is required")
        if len(cleaned) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return validate_money(v)

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("quantity must be at least 1")
        return v


class InvoiceCreate(BaseModel):
    """Schema for creating a new invoice"""

    patientId: int
    appointmentId: Optional[int] = None
    dueDate: Optional[date] = None
    notes: Optional[str] = None
    items: list[InvoiceItemCreate] = []


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice; items, when given, replace the current set"""

    dueDate: Optional[date] = None
    notes: Optional[str] = None
    items: Optional[list[InvoiceItemCreate]] = None


class PaymentCreate(BaseModel):
    """Schema for recording a payment against an invoice"""

    invoiceId: int
    amount: Decimal
    paymentMethod: str  # cash, card, insurance, bank_transfer
    transactionId: Optional[str] = None
    notes: Optional[str] = None
    receivedBy: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return validate_money(v)

    @field_validator("paymentMethod")
    @classmethod
    def validate_payment_method(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("paymentMethod is required")
        if len(v.strip()) > PAYMENT_METHOD_MAX_LENGTH:
            raise ValueError(
                f"paymentMethod cannot exceed {PAYMENT_METHOD_MAX_LENGTH} characters"
            )
        return v.strip()

    @field_validator("transactionId", "receivedBy")
    @classmethod
    def validate_reference_length(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is not None and len(v) > REFERENCE_MAX_LENGTH:
            raise ValueError(f"{info.field_name} cannot exceed {REFERENCE_MAX_LENGTH} characters")
        return v


class InvoiceItemResponse(BaseModel):
    id: int
    description: str
    amount: Decimal
    quantity: int
    lineTotal: Decimal


class PaymentSummary(BaseModel):
    id: int
    amount: Decimal
    paymentMethod: str
    paymentDate: datetime


class InvoiceResponse(BaseModel):
    """Schema for invoice response"""

    id: int
    invoiceNumber: str
    patientId: int
    appointmentId: Optional[int] = None
    items: list[InvoiceItemResponse]
    payments: list[PaymentSummary]
    totalAmount: Decimal
    paidAmount: Decimal
    remainingBalance: Decimal
    status: PaymentStatus
    dueDate: Optional[date] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, invoice) -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            invoiceNumber=invoice.invoice_number,
            patientId=invoice.patient_id,
            appointmentId=invoice.appointment_id,
            items=[
                InvoiceItemResponse(
                    id=item.id,
                    description=item.description,
                    amount=to_money(item.amount),
                    quantity=item.quantity,
                    lineTotal=line_total(item.amount, item.quantity),
                )
                for item in invoice.items
            ],
            payments=[
                PaymentSummary(
                    id=p.id,
                    amount=to_money(p.amount),
                    paymentMethod=p.payment_method,
                    paymentDate=p.payment_date,
                )
                for p in invoice.payments
            ],
            totalAmount=to_money(invoice.total_amount),
            paidAmount=to_money(invoice.paid_amount),
            remainingBalance=remaining_balance(invoice.total_amount, invoice.paid_amount),
            status=invoice.status,
            dueDate=invoice.due_date,
            notes=invoice.notes,
            createdAt=invoice.created_at,
        )


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: int
    invoiceId: int
    invoiceNumber: str
    amount: Decimal
    paymentMethod: str
    transactionId: Optional[str] = None
    paymentDate: datetime
    notes: Optional[str] = None
    receivedBy: Optional[str] = None

    @classmethod
    def from_model(cls, payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            invoiceId=payment.invoice_id,
            invoiceNumber=payment.invoice.invoice_number,
            amount=to_money(payment.amount),
            paymentMethod=payment.payment_method,
            transactionId=payment.transaction_id,
            paymentDate=payment.payment_date,
            notes=payment.notes,
            receivedBy=payment.received_by,
        )


class PaymentTotalResponse(BaseModel):
    """Schema for payments collected within a period"""

    start: datetime
    end: datetime
    total: Decimal


class PatientPaidTotalResponse(BaseModel):
    """Schema for the amount a patient has settled on fully paid invoices"""

    patientId: int
    totalPaid: Decimal
