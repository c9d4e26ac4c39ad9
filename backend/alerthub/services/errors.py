"""Errors raised by the alert/incident lifecycle services."""


class LifecycleError(ValueError):
    """Operation rejected before any mutation was applied."""


class NotFoundError(LookupError):
    """A referenced alert or incident does not exist."""


class IncidentAlreadyClosedError(LifecycleError):
    """Closure requested for an incident that is already closed."""


class AlertAlreadyPromotedError(LifecycleError):
    """Incident registration requested for an alert already linked to an incident."""
