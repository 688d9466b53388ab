"""
Typed Exception Hierarchy for the Payday Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell "no such cycle" from "already paid out" from
"the database fell over" without parsing message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        executor.execute(user_id, cycle_id)
    except CycleAlreadyCompletedError as e:
        api_response(code=e.code, cycle=str(e.cycle_id))
    except StorageFailureError:
        # The only class where re-invoking execute() is sane
        schedule_retry()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PaydayError (base)
    |
    +-- CycleError
    |   +-- CycleNotFoundError
    |   +-- CycleAlreadyCompletedError
    |   +-- InvalidCycleError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |
    +-- StorageFailureError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Cycle           | CYCLE_NOT_FOUND             | Cycle missing OR owned by someone else
                | CYCLE_ALREADY_COMPLETED     | Execute on a Completed cycle
                | INVALID_CYCLE               | Declaration failed validation
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Declared rule targets unknown account
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_FAILURE             | Read/write/commit failed
                | OPTIMISTIC_LOCK_CONFLICT    | Cycle claimed by a concurrent executor
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Ledger entry or executed rule modified

===============================================================================
"""

from uuid import UUID


class PaydayError(Exception):
    """
    Base exception for all payday kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYDAY_ERROR"


# Cycle-related exceptions


class CycleError(PaydayError):
    """Base exception for salary-cycle errors."""

    code: str = "CYCLE_ERROR"


class CycleNotFoundError(CycleError):
    """
    Cycle does not exist, or exists but belongs to another user.

    Both cases produce the identical message so that non-owners cannot
    probe for the existence of other users' cycles.
    """

    code: str = "CYCLE_NOT_FOUND"

    def __init__(self, cycle_id: UUID):
        self.cycle_id = cycle_id
        super().__init__(f"Salary cycle not found: {cycle_id}")


class CycleAlreadyCompletedError(CycleError):
    """Cycle has already been executed; callers should not retry."""

    code: str = "CYCLE_ALREADY_COMPLETED"

    def __init__(self, cycle_id: UUID):
        self.cycle_id = cycle_id
        super().__init__(f"Salary cycle already completed: {cycle_id}")


class InvalidCycleError(CycleError):
    """Cycle declaration failed validation."""

    code: str = "INVALID_CYCLE"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid salary cycle: {reason}")


# Account-related exceptions


class AccountError(PaydayError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with given ID was not found for this user."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# Storage-related exceptions


class StorageFailureError(PaydayError):
    """
    An underlying read, write or commit failed.

    The original driver/ORM exception is chained as ``__cause__``.
    """

    code: str = "STORAGE_FAILURE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")


class OptimisticLockError(StorageFailureError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            operation="flush",
            detail=(
                f"optimistic lock conflict on {entity_type} {entity_id}: "
                "entity was modified by another transaction"
            ),
        )


# Immutability-related exceptions


class ImmutabilityError(PaydayError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger entries are immutable from creation; distribution rules are
    immutable once executed.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
