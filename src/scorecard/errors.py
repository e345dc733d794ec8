"""Exception taxonomy for the scoring engine."""

from __future__ import annotations


class ScorecardError(Exception):
    pass


class InvalidMeasurementError(ScorecardError, ValueError):
    """A raw measurement is outside the domain its formula is defined on."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class ConfigurationNotFoundError(ScorecardError, LookupError):
    def __init__(self, category: str, config_id: str | None = None) -> None:
        self.category = category
        self.config_id = config_id
        if config_id:
            msg = f"No {category} configuration with id {config_id!r}"
        else:
            msg = f"No active {category} configuration"
        super().__init__(msg)


class SupplierNotFoundError(ScorecardError, LookupError):
    def __init__(self, supplier_id: str) -> None:
        self.supplier_id = supplier_id
        super().__init__(f"Supplier {supplier_id!r} not found")


class DuplicateSupplierCodeError(ScorecardError, ValueError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Supplier code {code!r} already exists")


class InvalidImportError(ScorecardError, ValueError):
    """An import payload is not a list of evaluation rows."""
