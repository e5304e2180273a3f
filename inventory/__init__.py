"""
Inventory module - pool of unassigned keys.

This module handles:
- PoolEntry entity and per-class pool partitions
- Exactly-once draws (KeyPool port with Django and in-memory adapters)
- Replenishment from the random key source
- Pool statistics
"""
