"""
Invoice, Invoice Item and Payment Models for the Billing Ledger
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class Invoice(Base):
    """Invoice billed to a patient, optionally raised for one appointment"""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(50), unique=True, nullable=False, index=True)

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    # At most one invoice per appointment
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, unique=True)

    # Amounts
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Derived from paid_amount vs total_amount, except CANCELLED
    status = Column(
        SQLEnum(PaymentStatus, native_enum=False, length=20),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )

    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint("paid_amount >= 0", name="ck_invoices_paid_non_negative"),
        CheckConstraint("paid_amount <= total_amount", name="ck_invoices_paid_within_total"),
    )


class InvoiceItem(Base):
    """Billable line on an invoice"""

    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)

    description = Column(String(500), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Unit price
    quantity = Column(Integer, nullable=False, default=1)

    invoice = relationship("Invoice", back_populates="items")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_items_amount_positive"),
        CheckConstraint("quantity >= 1", name="ck_invoice_items_quantity_positive"),
    )

    @property
    def line_total(self):
        return self.amount * self.quantity


class Payment(Base):
    """Payment applied to an invoice; append-only"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(50), nullable=False)  # cash, card, insurance, etc.
    transaction_id = Column(String(255), nullable=True)  # External reference
    payment_date = Column(DateTime, nullable=False, server_default=func.now())
    received_by = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    invoice = relationship("Invoice", back_populates="payments")

    __table_args__ = (CheckConstraint("amount > 0", name="ck_payments_amount_positive"),)
