"""
Model registration for the inventory app.

Django loads ``<app>.models`` when the app registry is populated; the
models themselves live in the infrastructure layer.
"""
from inventory.infrastructure.models import PoolEntry  # noqa: F401
