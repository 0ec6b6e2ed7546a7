"""Infrastructure Layer — database transactions and logging setup.

Invariants:
    - Implements the core Protocols (TransactionProvider); never imported by core/
"""
