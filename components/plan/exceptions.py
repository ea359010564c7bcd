"""Errors raised by the plan core."""


class PlanError(Exception):
    """Base class for plan errors."""


class PlanValidationError(PlanError, ValueError):
    """Input the core cannot act on (unknown time zone, invalid window)."""


class ActivePlanNotFound(PlanValidationError):
    """The user has no active plan to roll over or switch from."""


class PlanNotFound(PlanError, LookupError):
    """A plan does not exist or belongs to another user."""
