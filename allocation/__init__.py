"""
Allocation module - turning credits into keys.

This module handles:
- AllocationEngine (credit check, draw, assignment, debit, ledger)
- GenerationBatch, AssignedKey, CreditAccount and LedgerEntry entities
- Revocation and consumption of assigned keys
- Read-only queries over a principal's batches and keys
"""
