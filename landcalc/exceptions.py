"""Exception hierarchy for the LandCalc engine.

Every error the engine raises on purpose derives from ``LandCalcError`` so the
CLI and HTTP layers can map them to exit codes / status codes in one place.
"""

from __future__ import annotations


class LandCalcError(Exception):
    """Base class for all LandCalc errors."""

    pass


class InvalidInput(LandCalcError, ValueError):
    """Raised when a numeric, date or id field is malformed.

    Rejected before any resolution work begins.
    """

    pass


class InvalidFormula(LandCalcError, ValueError):
    """Raised when a quantity formula cannot be evaluated.

    Unresolved symbols after substitution or malformed arithmetic.
    """

    def __init__(self, formula: str, reason: str = "Invalid formula"):
        self.formula = formula
        self.reason = reason
        super().__init__(f"{reason}: {formula!r}")


class MaterialNotFound(LandCalcError):
    """Raised when neither the snapshot cache nor any provider has a price."""

    def __init__(self, material_slug: str, zip: str | None = None):
        self.material_slug = material_slug
        self.zip = zip
        where = f" (zip {zip})" if zip else ""
        super().__init__(f"No price found for material '{material_slug}'{where}")


class ExternalServiceFailure(LandCalcError):
    """Raised by outbound HTTP clients; always recovered by the caller."""

    def __init__(self, service: str, detail: str):
        self.service = service
        self.detail = detail
        super().__init__(f"{service} lookup failed: {detail}")


class AssemblyNotFound(LandCalcError):
    """Raised when an estimate line references an unknown assembly."""

    def __init__(self, assembly_id: object):
        self.assembly_id = assembly_id
        super().__init__(f"Assembly not found: {assembly_id}")


class EstimateNotFound(LandCalcError):
    """Raised when an estimate id does not exist."""

    def __init__(self, estimate_id: object):
        self.estimate_id = estimate_id
        super().__init__(f"Estimate not found: {estimate_id}")


class EstimateAlreadyFinalized(LandCalcError):
    """Raised when finalizing an estimate that already has a baseline."""

    def __init__(self, estimate_id: object):
        self.estimate_id = estimate_id
        super().__init__(f"Estimate already finalized: {estimate_id}")


class ChangeOrderNotFound(LandCalcError):
    """Raised when a change order id does not exist."""

    def __init__(self, change_order_id: object):
        self.change_order_id = change_order_id
        super().__init__(f"Change order not found: {change_order_id}")
