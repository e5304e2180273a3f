"""
GenerationBatch, AssignedKey, CreditAccount and LedgerEntry models.
"""
import uuid

from django.db import models
from django.utils import timezone

from core.domain.value_objects import KeyStatus
from inventory.infrastructure.models import KEY_CLASS_CHOICES


class GenerationBatch(models.Model):
    """
    Keys produced by one allocation call.

    ``idempotency_key`` is unique per principal; NULL keys never collide.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    principal_id = models.CharField(max_length=255, db_index=True)
    key_class = models.CharField(max_length=20, choices=KEY_CLASS_CHOICES)
    label = models.CharField(max_length=100)
    size = models.PositiveIntegerField()
    idempotency_key = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "generation_batches"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["principal_id", "key_class"]),
            models.Index(fields=["principal_id", "-created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["principal_id", "idempotency_key"],
                name="unique_batch_idempotency_key_per_principal",
            ),
        ]

    def __str__(self):
        return f"{self.label} ({self.size})"


class AssignedKey(models.Model):
    """
    A pool value owned by a principal.

    The one-to-one link to its pool entry guarantees a drawn value is
    assigned at most once.
    """

    STATUS_CHOICES = [
        (KeyStatus.ACTIVE.value, "Active"),
        (KeyStatus.CONSUMED.value, "Consumed"),
        (KeyStatus.EXPIRED.value, "Expired"),
        (KeyStatus.REVOKED.value, "Revoked"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    principal_id = models.CharField(max_length=255)
    value = models.CharField(max_length=255, unique=True)
    key_class = models.CharField(max_length=20, choices=KEY_CLASS_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=KeyStatus.ACTIVE.value)
    batch = models.ForeignKey(GenerationBatch, on_delete=models.PROTECT, related_name="keys")
    pool_entry = models.OneToOneField(
        "inventory.PoolEntry", on_delete=models.PROTECT, related_name="assignment"
    )
    assigned_at = models.DateTimeField(default=timezone.now)
    consumed_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "assigned_keys"
        ordering = ["-assigned_at"]
        indexes = [
            models.Index(fields=["principal_id", "status"]),
            models.Index(fields=["principal_id", "key_class"]),
            models.Index(fields=["principal_id", "-assigned_at"]),
        ]

    def __str__(self):
        return f"{self.value} ({self.status})"


class CreditAccount(models.Model):
    """Credit balance and key counters of a principal."""

    principal_id = models.CharField(max_length=255, unique=True)
    balance = models.IntegerField(default=0)
    lifetime_assigned = models.IntegerField(default=0)
    keys_generated = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "credit_accounts"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0), name="credit_balance_non_negative"
            ),
            models.CheckConstraint(
                condition=models.Q(keys_generated__gte=0), name="keys_generated_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.principal_id}: {self.balance}"


class LedgerEntry(models.Model):
    """
    Append-only audit record of an allocation.

    Stored rows can be neither updated nor deleted through the model.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    principal_id = models.CharField(max_length=255, db_index=True)
    batch_id = models.UUIDField(unique=True)
    quantity = models.PositiveIntegerField()
    cost = models.PositiveIntegerField()
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "ledger_entries"
        ordering = ["timestamp"]

    def __str__(self):
        return f"{self.principal_id}: {self.quantity} key(s) for {self.cost}"

    def save(self, *args, **kwargs):
        """Allow inserts only."""
        if not self._state.adding:
            raise ValueError("Ledger entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries cannot be deleted")
