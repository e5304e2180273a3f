"""
Entity to DTO conversion shared by the allocation handlers.
"""

from allocation.application.dto.allocation_dto import AssignedKeyDTO, GenerationBatchDTO
from allocation.domain.assigned_key import AssignedKey
from allocation.domain.generation_batch import GenerationBatch


def to_key_dto(key: AssignedKey) -> AssignedKeyDTO:
    return AssignedKeyDTO(
        id=key.id,
        value=key.value,
        key_class=key.key_class.value,
        status=key.status.value,
        batch_id=key.batch_id,
        assigned_at=key.assigned_at,
        consumed_at=key.consumed_at,
    )


def to_batch_dto(batch: GenerationBatch) -> GenerationBatchDTO:
    return GenerationBatchDTO(
        id=batch.id,
        key_class=batch.key_class.value,
        label=batch.label,
        size=batch.size,
        created_at=batch.created_at,
    )
