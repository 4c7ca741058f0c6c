"""Billing repository - Database operations for invoices and payments"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Appointment
from ...models_invoice import Invoice, InvoiceItem, Payment, PaymentStatus


class BillingRepository:
    """Repository for billing database operations"""

    # Invoice queries
    @staticmethod
    def get_invoices(db: Session) -> list[Invoice]:
        """Get all invoices"""
        return db.query(Invoice).order_by(Invoice.id).all()

    @staticmethod
    def get_invoice_by_id(db: Session, invoice_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id).first()

    @staticmethod
    def get_invoice_for_update(db: Session, invoice_id: int) -> Optional[Invoice]:
        """Get an invoice and lock its row until commit"""
        return db.query(Invoice).filter(Invoice.id == invoice_id).with_for_update().first()

    @staticmethod
    def get_invoice_by_number(db: Session, invoice_number: str) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()

    @staticmethod
    def get_invoice_by_appointment(db: Session, appointment_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.appointment_id == appointment_id).first()

    @staticmethod
    def get_invoices_by_patient(db: Session, patient_id: int) -> list[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.patient_id == patient_id)
            .order_by(Invoice.id)
            .all()
        )

    @staticmethod
    def get_invoices_by_status(db: Session, status: PaymentStatus) -> list[Invoice]:
        return db.query(Invoice).filter(Invoice.status == status).order_by(Invoice.id).all()

    @staticmethod
    def get_overdue_invoices(db: Session, today: date) -> list[Invoice]:
        """Invoices past their due date that are still collectable"""
        return (
            db.query(Invoice)
            .filter(
                Invoice.due_date < today,
                Invoice.status.notin_([PaymentStatus.PAID, PaymentStatus.CANCELLED]),
            )
            .order_by(Invoice.due_date, Invoice.id)
            .all()
        )

    @staticmethod
    def get_appointment_for_update(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get the appointment an invoice is raised for, locking its row"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .first()
        )

    # Invoice writes
    @staticmethod
    def create_invoice(
        db: Session,
        items: list[dict],
        appointment: Optional[Appointment] = None,
        **invoice_data,
    ) -> Invoice:
        """Create an invoice with its items and link the appointment back to it"""
        invoice = Invoice(**invoice_data)
        invoice.items = [InvoiceItem(**item) for item in items]
        db.add(invoice)
        db.flush()

        if appointment is not None:
            appointment.invoice_id = invoice.id

        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def update_invoice(
        db: Session,
        invoice: Invoice,
        items: Optional[list[dict]] = None,
        **updates,
    ) -> Invoice:
        """Update an invoice; a given item list replaces the existing items"""
        if items is not None:
            # delete-orphan cascade removes the previous rows
            invoice.items = [InvoiceItem(**item) for item in items]

        for key, value in updates.items():
            if value is not None and hasattr(invoice, key):
                setattr(invoice, key, value)

        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def cancel_invoice(db: Session, invoice: Invoice) -> Invoice:
        invoice.status = PaymentStatus.CANCELLED
        db.commit()
        db.refresh(invoice)
        return invoice

    # Payments
    @staticmethod
    def record_payment(
        db: Session,
        invoice: Invoice,
        paid_amount: Decimal,
        status: PaymentStatus,
        **payment_data,
    ) -> Payment:
        """Append a payment and apply it to the invoice in a single commit"""
        payment = Payment(invoice=invoice, **payment_data)
        db.add(payment)
        invoice.paid_amount = paid_amount
        invoice.status = status

        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_payments_by_invoice(db: Session, invoice_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.invoice_id == invoice_id)
            .order_by(Payment.id)
            .all()
        )

    # Aggregates
    @staticmethod
    def get_total_payments_by_date_range(db: Session, start: datetime, end: datetime):
        """Sum of payments recorded between start and end (inclusive)"""
        return (
            db.query(func.sum(Payment.amount))
            .filter(Payment.payment_date.between(start, end))
            .scalar()
        )

    @staticmethod
    def get_total_paid_by_patient(db: Session, patient_id: int):
        """Sum of totals over a patient's fully paid invoices"""
        return (
            db.query(func.sum(Invoice.total_amount))
            .filter(Invoice.patient_id == patient_id, Invoice.status == PaymentStatus.PAID)
            .scalar()
        )
