"""
Payday Kernel

Salary-cycle distribution for a personal finance tracker:
- Ordered distribution rules (fixed, percentage, remainder)
- Atomic execution with rollback on any failure
- Append-only ledger of distribution deposits
- Row locking and optimistic versioning on cycle execution
"""

__version__ = "0.1.0"
