"""
PoolEntry model.
"""
from django.db import models
from django.utils import timezone

from core.domain.value_objects import KeyClass, PoolEntryStatus

KEY_CLASS_CHOICES = [(key_class.value, key_class.label) for key_class in KeyClass]


class PoolEntry(models.Model):
    """
    An unassigned key waiting in the inventory of its class.

    Rows are never deleted; a drawn row is the permanent record that its
    value has been handed out.
    """

    STATUS_CHOICES = [
        (PoolEntryStatus.AVAILABLE.value, "Available"),
        (PoolEntryStatus.DRAWN.value, "Drawn"),
    ]

    id = models.BigAutoField(primary_key=True)
    value = models.CharField(max_length=255, unique=True)
    key_class = models.CharField(max_length=20, choices=KEY_CLASS_CHOICES)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=PoolEntryStatus.AVAILABLE.value
    )
    added_at = models.DateTimeField(default=timezone.now)
    drawn_at = models.DateTimeField(null=True, blank=True)
    drawn_batch_id = models.UUIDField(
        null=True, blank=True, db_index=True, help_text="Generation batch that received the value"
    )

    class Meta:
        db_table = "pool_entries"
        ordering = ["added_at", "id"]
        indexes = [
            models.Index(fields=["key_class", "status", "added_at", "id"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status=PoolEntryStatus.AVAILABLE.value, drawn_at__isnull=True)
                | models.Q(status=PoolEntryStatus.DRAWN.value, drawn_at__isnull=False),
                name="pool_entry_drawn_state_consistent",
            ),
        ]

    def __str__(self):
        return f"{self.key_class}:{self.value} ({self.status})"
