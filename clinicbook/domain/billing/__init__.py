"""
Billing Domain

Invoices, their line items and the payments applied to them.

Structure:
- schemas.py     # Request/response models
- ledger.py      # Totals, balances and payment status derivation
- repository.py  # Invoice and payment queries and writes
- service.py     # Invoice lifecycle and payment recording
- router.py      # /api/v1/billing endpoints
"""

from .router import router
from .service import BillingService

__all__ = ["router", "BillingService"]
