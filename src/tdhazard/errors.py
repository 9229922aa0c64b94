"""
Error taxonomy for hazard annotations.

Every validation failure is raised as a subclass of HazardError and carries
enough context to be actionable:
    - affordance: name of the affordance being annotated (if known)
    - hazard: hazard tag (e.g. "sho:FireHazard", if known)
    - offending: the range, value or fragment that was rejected

Validation is deterministic. A failure recurs until the input is corrected,
so nothing here is retryable.
"""

from typing import Any, Optional


class HazardError(Exception):
    """Base class for all hazard annotation errors."""

    def __init__(
        self,
        message: str,
        *,
        affordance: Optional[str] = None,
        hazard: Optional[str] = None,
        offending: Any = None,
    ):
        self.message = message
        self.affordance = affordance
        self.hazard = hazard
        self.offending = offending
        super().__init__(self._format())

    def _format(self) -> str:
        prefix = []
        if self.affordance is not None:
            prefix.append(f"affordance '{self.affordance}'")
        if self.hazard is not None:
            prefix.append(f"hazard {self.hazard}")
        if prefix:
            return f"{', '.join(prefix)}: {self.message}"
        return self.message

    def with_context(self, affordance: Optional[str] = None, hazard: Optional[str] = None) -> "HazardError":
        """Return a copy of this error with missing context filled in."""
        return type(self)(
            self.message,
            affordance=self.affordance if self.affordance is not None else affordance,
            hazard=self.hazard if self.hazard is not None else hazard,
            offending=self.offending,
        )


class UnknownHazard(HazardError, LookupError):
    """Raised when a hazard identifier is not in the catalog."""
    pass


class UnknownAffordance(HazardError, LookupError):
    """Raised when a binding names an affordance the Thing does not declare."""
    pass


class InapplicableHazard(HazardError):
    """Raised when a hazard cannot apply to the affordance kind or domain."""
    pass


class RangeOverlap(HazardError):
    """Raised when two ranges of one risk table share a value."""
    pass


class RangeOutOfDomain(HazardError):
    """Raised when a range, condition or queried value lies outside the domain."""
    pass


class RangeGap(HazardError):
    """Raised when a risk table leaves part of the domain uncovered."""
    pass


class DuplicateBinding(HazardError):
    """Raised when the same hazard is bound twice to one affordance."""
    pass


class MalformedExtension(HazardError):
    """Raised when a serialized extension fragment is structurally invalid."""
    pass
