"""
Typed Exception Hierarchy for the Haul Kernel.

Business-rule violations found while validating a haul event are never
raised: they are returned as error and warning strings in the validation
result.  The exceptions below cover the failures that happen around the
engines -- loading a rule set, and applying an allocation to a line.

Every exception:
  1. Has a typed class (catch by type, not by message)
  2. Has a ``code`` class attribute (machine-readable, API-safe)
  3. Carries structured data as attributes

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HaulKernelError (base)
    |
    +-- ConfigError
    |   +-- ConfigNotFoundError
    |   +-- InvalidConfigError
    |
    +-- AllocationError
        +-- NoAllocationError
        +-- AllocationMismatchError
        +-- InsufficientBalanceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_NOT_FOUND            | No rule set matches site/date
                | INVALID_CONFIG              | Rule set fails structural validation
----------------|-----------------------------|-----------------------------------------
Allocation      | NO_ALLOCATION               | Applying a failed requisition match
                | ALLOCATION_MISMATCH         | Line supplied is not the matched line
                | INSUFFICIENT_BALANCE        | Line balance no longer covers quantity
----------------|-----------------------------|-----------------------------------------

InsufficientBalanceError is the signal of a stale snapshot: another
submission consumed the balance between the match and the apply.  Callers
re-read the line and retry the match.
"""

from decimal import Decimal


class HaulKernelError(Exception):
    """
    Base exception for all haul kernel errors.

    All subclasses must have a `code` class attribute.
    """

    code: str = "HAUL_KERNEL_ERROR"


# Configuration exceptions


class ConfigError(HaulKernelError):
    """Base exception for rule-set configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigNotFoundError(ConfigError):
    """No configuration set matches the requested scope and date."""

    code: str = "CONFIG_NOT_FOUND"

    def __init__(self, site_id: str, as_of_date: str, config_dir: str):
        self.site_id = site_id
        self.as_of_date = as_of_date
        self.config_dir = config_dir
        super().__init__(
            f"No haul rule set found for site_id='{site_id}' "
            f"as_of_date={as_of_date} in {config_dir}"
        )


class InvalidConfigError(ConfigError):
    """A configuration set failed structural validation."""

    code: str = "INVALID_CONFIG"

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = errors
        super().__init__(
            f"Haul rule set '{config_id}' is invalid:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


# Allocation exceptions


class AllocationError(HaulKernelError):
    """Base exception for applying requisition allocations."""

    code: str = "ALLOCATION_ERROR"


class NoAllocationError(AllocationError):
    """The requisition match did not produce a line to charge."""

    code: str = "NO_ALLOCATION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"No requisition line to apply: {reason}")


class AllocationMismatchError(AllocationError):
    """The line supplied at apply time is not the line that was matched."""

    code: str = "ALLOCATION_MISMATCH"

    def __init__(self, matched_line_id: str, supplied_line_id: str):
        self.matched_line_id = matched_line_id
        self.supplied_line_id = supplied_line_id
        super().__init__(
            f"Matched line {matched_line_id} but line {supplied_line_id} was supplied"
        )


class InsufficientBalanceError(AllocationError):
    """The current line balance no longer covers the haul quantity."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, line_id: str, quantity: Decimal, remaining_balance: Decimal):
        self.line_id = line_id
        self.quantity = quantity
        self.remaining_balance = remaining_balance
        super().__init__(
            f"Line {line_id} has {remaining_balance} remaining; "
            f"cannot apply {quantity}"
        )
