"""Billing service - Business logic for the invoice ledger"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, NoReturn, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...directory import Directory, SqlDirectory
from ...models_invoice import Invoice, Payment, PaymentStatus
from ...shared.validators import parse_enum
from ...utils.sanitization import sanitize_text
from .ledger import (
    ZERO,
    compute_total,
    derive_payment_status,
    generate_invoice_number,
    remaining_balance,
    to_money,
)
from .repository import BillingRepository
from .schemas import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate, PaymentCreate

logger = logging.getLogger(__name__)


class BillingService:
    """Service layer for invoice and payment business logic"""

    def __init__(
        self,
        db: Session,
        directory: Optional[Directory] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.repo = BillingRepository()
        self.directory = directory or SqlDirectory(db)
        self.clock = clock

    def _reject(self, status_code: int, detail: str) -> NoReturn:
        """End the unit of work and surface the failure to the caller"""
        self.db.rollback()
        logger.warning(f"⚠️ {detail}")
        raise HTTPException(status_code=status_code, detail=detail)

    @staticmethod
    def _item_rows(items: list[InvoiceItemCreate]) -> list[dict]:
        return [
            {
                "description": sanitize_text(item.description),
                "amount": item.amount,
                "quantity": item.quantity,
            }
            for item in items
        ]

    # ========================================================================
    # INVOICE QUERIES
    # ========================================================================

    def get_invoices(self) -> list[Invoice]:
        return self.repo.get_invoices(self.db)

    def get_invoice(self, invoice_id: int) -> Invoice:
        """Get a specific invoice"""
        invoice = self.repo.get_invoice_by_id(self.db, invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def get_invoice_by_number(self, invoice_number: str) -> Invoice:
        invoice = self.repo.get_invoice_by_number(self.db, invoice_number)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def get_invoices_by_patient(self, patient_id: int) -> list[Invoice]:
        return self.repo.get_invoices_by_patient(self.db, patient_id)

    def get_invoices_by_status(self, status) -> list[Invoice]:
        try:
            status = parse_enum(PaymentStatus, status)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return self.repo.get_invoices_by_status(self.db, status)

    def get_overdue_invoices(self) -> list[Invoice]:
        """Invoices whose due date has passed and that still expect payment"""
        return self.repo.get_overdue_invoices(self.db, self.clock().date())

    # ========================================================================
    # INVOICE LIFECYCLE
    # ========================================================================

    def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """Create an invoice, optionally for an appointment that has none yet"""
        logger.info(f"🧾 Creating invoice for patient_id: {data.patientId}")

        if not self.directory.patient_exists(data.patientId):
            self._reject(404, "Patient not found")

        appointment = None
        if data.appointmentId is not None:
            appointment = self.repo.get_appointment_for_update(self.db, data.appointmentId)
            if not appointment:
                self._reject(404, "Appointment not found")
            if appointment.invoice_id is not None or self.repo.get_invoice_by_appointment(
                self.db, data.appointmentId
            ):
                self._reject(400, "Appointment already has an invoice")

        invoice_data = {
            "invoice_number": generate_invoice_number(),
            "patient_id": data.patientId,
            "appointment_id": data.appointmentId,
            "due_date": data.dueDate,
            "notes": sanitize_text(data.notes),
            "total_amount": compute_total(data.items),
            "paid_amount": ZERO,
            "status": PaymentStatus.PENDING,
        }

        try:
            invoice = self.repo.create_invoice(
                self.db, self._item_rows(data.items), appointment, **invoice_data
            )
        except IntegrityError:
            if data.appointmentId is not None:
                # A concurrent request invoiced the same appointment first
                self._reject(400, "Appointment already has an invoice")
            self._reject(400, "Invoice could not be created")

        logger.info(
            f"✅ Invoice created with ID: {invoice.id} and number: {invoice.invoice_number}"
        )
        return invoice

    def update_invoice(self, invoice_id: int, data: InvoiceUpdate) -> Invoice:
        """Update due date, notes or the full item set of an unpaid invoice"""
        logger.info(f"📝 Updating invoice with ID: {invoice_id}")

        invoice = self.repo.get_invoice_for_update(self.db, invoice_id)
        if not invoice:
            self._reject(404, "Invoice not found")

        if invoice.status == PaymentStatus.PAID:
            self._reject(400, "Cannot update a fully paid invoice")

        updates = {}
        if data.dueDate is not None:
            updates["due_date"] = data.dueDate
        if data.notes is not None:
            updates["notes"] = sanitize_text(data.notes)

        items = None
        if data.items is not None:
            total = compute_total(data.items)
            paid = to_money(invoice.paid_amount)
            if total < paid:
                self._reject(
                    400,
                    f"Invoice total {total} cannot be less than the amount already paid ({paid})",
                )
            items = self._item_rows(data.items)
            updates["total_amount"] = total
            if invoice.status != PaymentStatus.CANCELLED:
                updates["status"] = derive_payment_status(paid, total)

        try:
            invoice = self.repo.update_invoice(self.db, invoice, items=items, **updates)
        except IntegrityError:
            self._reject(400, "Invoice could not be updated")

        logger.info(f"✅ Invoice {invoice_id} updated (total: {to_money(invoice.total_amount)})")
        return invoice

    def cancel_invoice(self, invoice_id: int) -> Invoice:
        """Cancel an invoice; recorded payments are left as they are"""
        logger.info(f"🗑️ Cancelling invoice with ID: {invoice_id}")

        invoice = self.repo.get_invoice_for_update(self.db, invoice_id)
        if not invoice:
            self._reject(404, "Invoice not found")

        if invoice.status == PaymentStatus.PAID:
            self._reject(400, "Cannot cancel a paid invoice")

        invoice = self.repo.cancel_invoice(self.db, invoice)
        logger.info(f"✅ Invoice {invoice_id} cancelled")
        return invoice

    # ========================================================================
    # PAYMENTS
    # ========================================================================

    def get_payments_by_invoice(self, invoice_id: int) -> list[Payment]:
        self.get_invoice(invoice_id)
        return self.repo.get_payments_by_invoice(self.db, invoice_id)

    def record_payment(self, data: PaymentCreate) -> Payment:
        """Apply a payment to an invoice and re-derive its status"""
        logger.info(f"💳 Recording payment of {data.amount} for invoice ID: {data.invoiceId}")

        invoice = self.repo.get_invoice_for_update(self.db, data.invoiceId)
        if not invoice:
            self._reject(404, "Invoice not found")

        if invoice.status == PaymentStatus.PAID:
            self._reject(400, "Invoice is already fully paid")
        if invoice.status == PaymentStatus.CANCELLED:
            self._reject(400, "Cannot make payment on a cancelled invoice")

        remaining = remaining_balance(invoice.total_amount, invoice.paid_amount)
        if data.amount > remaining:
            self._reject(400, f"Payment amount exceeds remaining balance of {remaining}")

        paid_amount = to_money(invoice.paid_amount) + data.amount
        payment_data = {
            "amount": data.amount,
            "payment_method": data.paymentMethod,
            "transaction_id": data.transactionId,
            "notes": sanitize_text(data.notes),
            "received_by": data.receivedBy,
            "payment_date": self.clock(),
        }

        try:
            payment = self.repo.record_payment(
                self.db,
                invoice,
                paid_amount=paid_amount,
                status=derive_payment_status(paid_amount, invoice.total_amount),
                **payment_data,
            )
        except IntegrityError:
            # paid_amount <= total_amount is enforced by the database as well
            self._reject(400, "Payment amount exceeds remaining balance")

        logger.info(
            f"✅ Payment recorded with ID: {payment.id}; invoice {invoice.id} is now {PaymentStatus(invoice.status).value}"
        )
        return payment

    # ========================================================================
    # REPORTING
    # ========================================================================

    def get_total_payments(self, start: datetime, end: datetime) -> Decimal:
        """Total collected between two instants"""
        if start > end:
            raise HTTPException(status_code=400, detail="start must be before end")
        return to_money(self.repo.get_total_payments_by_date_range(self.db, start, end))

    def get_total_paid_by_patient(self, patient_id: int) -> Decimal:
        if not self.directory.patient_exists(patient_id):
            raise HTTPException(status_code=404, detail="Patient not found")
        return to_money(self.repo.get_total_paid_by_patient(self.db, patient_id))
