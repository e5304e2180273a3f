"""
Core module for shared domain infrastructure.

This module contains:
- Domain events, exceptions and value objects
- Engine configuration
- Event bus and compensation journal
- Metrics, tracing and background tasks
"""
