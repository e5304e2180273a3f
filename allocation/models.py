"""
Model registration for the allocation app.

Django loads ``<app>.models`` when the app registry is populated; the
models themselves live in the infrastructure layer.
"""
from allocation.infrastructure.models import (  # noqa: F401
    AssignedKey,
    CreditAccount,
    GenerationBatch,
    LedgerEntry,
)
