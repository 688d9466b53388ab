"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The ledger is append-only, and a distribution rule that has moved money is a
historical fact.  Neither may be rewritten by application code.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, we raise ImmutabilityViolationError and the unit of work
is aborted.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                  | When Immutable               | Why
------------------------|------------------------------|---------------------------------
LedgerEntry             | ALWAYS (from creation)       | Ledger is append-only
SalaryDistribution      | After is_executed = True     | Money already moved for it

Bulk ``UPDATE``/``DELETE`` statements bypass ORM events; the kernel never
issues them against these tables.
"""

from sqlalchemy import event, inspect

from payday_kernel.exceptions import ImmutabilityViolationError
from payday_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_ledger_entry_immutability(mapper, connection, target):
    """Prevent any updates to LedgerEntry records."""
    raise _blocked(
        "LedgerEntry",
        str(target.id),
        "UPDATE",
        "Ledger entries are immutable and cannot be modified",
    )


def _check_ledger_entry_delete(mapper, connection, target):
    """Prevent deletion of LedgerEntry records."""
    raise _blocked(
        "LedgerEntry",
        str(target.id),
        "DELETE",
        "Ledger entries are immutable and cannot be deleted",
    )


def _check_distribution_immutability(mapper, connection, target):
    """
    Prevent updates to a distribution rule once it has executed.

    The single permitted transition is is_executed False -> True (with
    executed_at set in the same flush).
    """
    history = inspect(target).attrs.is_executed.history
    was_executed = bool(history.deleted[0]) if history.deleted else target.is_executed
    if history.has_changes() and not was_executed:
        return

    if was_executed:
        raise _blocked(
            "SalaryDistribution",
            str(target.id),
            "UPDATE",
            "Executed distribution rules cannot be modified",
        )


def _check_distribution_delete(mapper, connection, target):
    """Prevent deletion of an executed distribution rule."""
    if target.is_executed:
        raise _blocked(
            "SalaryDistribution",
            str(target.id),
            "DELETE",
            "Executed distribution rules cannot be deleted",
        )


_LISTENERS = (
    ("LedgerEntry", "before_update", _check_ledger_entry_immutability),
    ("LedgerEntry", "before_delete", _check_ledger_entry_delete),
    ("SalaryDistribution", "before_update", _check_distribution_immutability),
    ("SalaryDistribution", "before_delete", _check_distribution_delete),
)


def _targets() -> dict:
    from payday_kernel.models.ledger import LedgerEntry
    from payday_kernel.models.salary_cycle import SalaryDistribution

    return {
        "LedgerEntry": LedgerEntry,
        "SalaryDistribution": SalaryDistribution,
    }


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent.  Called from ``payday_kernel.config.bootstrap`` and by the
    test suite before any database operations begin.
    """
    targets = _targets()
    for name, event_name, listener_fn in _LISTENERS:
        if not event.contains(targets[name], event_name, listener_fn):
            event.listen(targets[name], event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    targets = _targets()
    for name, event_name, listener_fn in _LISTENERS:
        if event.contains(targets[name], event_name, listener_fn):
            event.remove(targets[name], event_name, listener_fn)
