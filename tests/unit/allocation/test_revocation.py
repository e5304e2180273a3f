"""
Unit tests for RevocationService.
"""
import uuid

import pytest

from core.domain.exceptions import (
    AlreadyConsumedError,
    BatchNotFoundError,
    KeyNotActiveError,
    KeyNotFoundError,
    NotFoundError,
)
from core.domain.value_objects import KeyClass, KeyStatus

DAY = KeyClass.EPHEMERAL_SHORT


@pytest.fixture
def batch(engine, key_pool, pool_filler, funded_principal):
    """Fixture for a batch of 4 keys, with 6 keys left in the pool."""
    pool_filler(key_pool, DAY, count=10)
    return engine.allocate(funded_principal, DAY, 4)


class TestRevokeBatch:
    """Tests for batch revocation."""

    def test_revoke_batch(self, revocation_service, uow, key_pool, batch, funded_principal):
        """Test every key is revoked without refund or return to the pool."""
        revoked = revocation_service.revoke_batch(funded_principal, batch.id)

        assert revoked == 4
        keys = uow.assigned_keys.find_by_batch(batch.id)
        assert all(key.status == KeyStatus.REVOKED for key in keys)
        assert all(key.revoked_at is not None for key in keys)
        assert key_pool.available_count(DAY) == 6

        account = uow.accounts.find(funded_principal)
        assert account.balance == 96
        assert account.lifetime_assigned == 4
        assert account.keys_generated == 0

    def test_revoke_batch_twice(self, revocation_service, batch, funded_principal):
        """Test a fully revoked batch is gone."""
        revocation_service.revoke_batch(funded_principal, batch.id)

        with pytest.raises(BatchNotFoundError):
            revocation_service.revoke_batch(funded_principal, batch.id)

    def test_foreign_batch(self, revocation_service, uow, batch, other_principal_id):
        """Test another principal's batch looks missing."""
        with pytest.raises(BatchNotFoundError) as exc_info:
            revocation_service.revoke_batch(other_principal_id, batch.id)

        assert isinstance(exc_info.value, NotFoundError)
        assert all(key.is_active for key in uow.assigned_keys.find_by_batch(batch.id))

    def test_unknown_batch(self, revocation_service, funded_principal):
        """Test a missing batch."""
        with pytest.raises(BatchNotFoundError):
            revocation_service.revoke_batch(funded_principal, uuid.uuid4())

    def test_partially_revoked_batch(self, revocation_service, batch, funded_principal):
        """Test only live keys are counted."""
        revocation_service.revoke_key(funded_principal, batch.keys[0].id)

        assert revocation_service.revoke_batch(funded_principal, batch.id) == 3

    def test_revoked_values_are_not_reissued(
        self, revocation_service, engine, batch, funded_principal
    ):
        """Test revoked values never come back from the pool."""
        revocation_service.revoke_batch(funded_principal, batch.id)

        later = engine.allocate(funded_principal, DAY, 6)

        revoked_values = {key.value for key in batch.keys}
        assert revoked_values.isdisjoint(key.value for key in later.keys)


class TestRevokeKeys:
    """Tests for single and bulk key revocation."""

    def test_revoke_key(self, revocation_service, uow, batch, funded_principal):
        """Test revoking one key."""
        key = batch.keys[1]

        revocation_service.revoke_key(funded_principal, key.id)

        assert uow.assigned_keys.find_by_id(key.id).is_revoked
        assert uow.accounts.find(funded_principal).keys_generated == 3

    def test_revoke_key_twice(self, revocation_service, batch, funded_principal):
        """Test an already revoked key is not found."""
        revocation_service.revoke_key(funded_principal, batch.keys[0].id)

        with pytest.raises(KeyNotFoundError):
            revocation_service.revoke_key(funded_principal, batch.keys[0].id)

    def test_revoke_foreign_key(self, revocation_service, uow, batch, other_principal_id):
        """Test another principal's key looks missing."""
        with pytest.raises(KeyNotFoundError):
            revocation_service.revoke_key(other_principal_id, batch.keys[0].id)

        assert uow.assigned_keys.find_by_id(batch.keys[0].id).is_active

    def test_bulk_revoke(self, revocation_service, batch, funded_principal):
        """Test revoking several keys, ignoring repeats."""
        ids = [batch.keys[0].id, batch.keys[2].id, batch.keys[0].id]

        assert revocation_service.revoke_keys(funded_principal, ids) == 2

    def test_bulk_revoke_is_all_or_nothing(self, revocation_service, uow, batch, funded_principal):
        """Test one unknown key rejects the whole call."""
        ids = [batch.keys[0].id, uuid.uuid4()]

        with pytest.raises(KeyNotFoundError):
            revocation_service.revoke_keys(funded_principal, ids)

        assert uow.assigned_keys.find_by_id(batch.keys[0].id).is_active
        assert uow.accounts.find(funded_principal).keys_generated == 4

    def test_bulk_revoke_empty(self, revocation_service, funded_principal):
        """Test an empty list."""
        with pytest.raises(KeyNotFoundError):
            revocation_service.revoke_keys(funded_principal, [])


class TestMarkConsumed:
    """Tests for consuming keys."""

    def test_mark_consumed(self, revocation_service, uow, batch, funded_principal):
        """Test an active key becomes consumed."""
        key = revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

        assert key.status == KeyStatus.CONSUMED
        assert uow.assigned_keys.find_by_id(key.id).status == KeyStatus.CONSUMED

    def test_mark_consumed_twice(self, revocation_service, batch, funded_principal):
        """Test the second consume fails."""
        revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

        with pytest.raises(AlreadyConsumedError):
            revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

    def test_consume_foreign_key(self, revocation_service, batch, other_principal_id):
        """Test another principal's key looks missing."""
        with pytest.raises(KeyNotFoundError):
            revocation_service.mark_consumed(other_principal_id, batch.keys[0].id)

    def test_consume_revoked_key(self, revocation_service, batch, funded_principal):
        """Test revoked keys are invisible."""
        revocation_service.revoke_key(funded_principal, batch.keys[0].id)

        with pytest.raises(KeyNotFoundError):
            revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

    def test_revoke_consumed_key(self, revocation_service, uow, batch, funded_principal):
        """Test consumed keys can still be revoked."""
        revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

        revocation_service.revoke_key(funded_principal, batch.keys[0].id)

        assert uow.assigned_keys.find_by_id(batch.keys[0].id).is_revoked


class TestMarkExpired:
    """Tests for expiring keys."""

    def test_mark_expired(self, revocation_service, uow, batch, funded_principal):
        """Test an active key becomes expired and can no longer be consumed."""
        key = revocation_service.mark_expired(funded_principal, batch.keys[0].id)

        assert key.status == KeyStatus.EXPIRED
        assert uow.assigned_keys.find_by_id(key.id).status == KeyStatus.EXPIRED
        with pytest.raises(KeyNotActiveError):
            revocation_service.mark_consumed(funded_principal, key.id)

    def test_mark_expired_twice(self, revocation_service, batch, funded_principal):
        """Test an expired key cannot expire again."""
        revocation_service.mark_expired(funded_principal, batch.keys[0].id)

        with pytest.raises(KeyNotActiveError):
            revocation_service.mark_expired(funded_principal, batch.keys[0].id)

    def test_expire_consumed_key(self, revocation_service, batch, funded_principal):
        """Test consumed keys stay consumed."""
        revocation_service.mark_consumed(funded_principal, batch.keys[0].id)

        with pytest.raises(KeyNotActiveError):
            revocation_service.mark_expired(funded_principal, batch.keys[0].id)

    def test_expire_foreign_key(self, revocation_service, batch, other_principal_id):
        """Test another principal's key looks missing."""
        with pytest.raises(KeyNotFoundError):
            revocation_service.mark_expired(other_principal_id, batch.keys[0].id)

    def test_expired_key_can_be_revoked(self, revocation_service, uow, batch, funded_principal):
        """Test expiry does not block revocation."""
        revocation_service.mark_expired(funded_principal, batch.keys[0].id)

        revocation_service.revoke_key(funded_principal, batch.keys[0].id)

        assert uow.accounts.find(funded_principal).keys_generated == 3


class TestNumericPrincipal:
    """Tests for principal ids given as integers."""

    @pytest.fixture
    def numeric_batch(self, engine, uow, key_pool, pool_filler):
        pool_filler(key_pool, DAY, count=5)
        uow.accounts.deposit(42, 10)
        return engine.allocate(42, DAY, 2)

    def test_allocation_is_stored_as_string(self, uow, numeric_batch):
        """Test the batch and account use the string form."""
        assert numeric_batch.principal_id == "42"
        assert uow.accounts.find("42").keys_generated == 2

    def test_revoke_key(self, revocation_service, uow, numeric_batch):
        """Test the keys_generated counter drops for an integer caller."""
        revocation_service.revoke_key(42, numeric_batch.keys[0].id)

        assert uow.accounts.find("42").keys_generated == 1

    def test_revoke_batch(self, revocation_service, uow, numeric_batch):
        """Test an integer caller owns its batch."""
        assert revocation_service.revoke_batch(42, numeric_batch.id) == 2
        assert uow.accounts.find(42).keys_generated == 0

    def test_consume_and_expire(self, revocation_service, numeric_batch):
        """Test an integer caller owns its keys."""
        consumed = revocation_service.mark_consumed(42, numeric_batch.keys[0].id)
        expired = revocation_service.mark_expired(42, numeric_batch.keys[1].id)

        assert consumed.status == KeyStatus.CONSUMED
        assert expired.status == KeyStatus.EXPIRED
