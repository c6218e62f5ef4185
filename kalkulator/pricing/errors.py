from __future__ import annotations


class PricingValidationError(ValueError):
    """A legally required answer is missing; `message` is Czech and user-facing."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
