"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input rejected before any mutation took place"""

    pass


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConversionError(DomainException):
    """Currency conversion could not be performed"""

    pass


class NoRatePathError(ConversionError):
    """No direct, inverse or triangulated rate connects the two currencies"""

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(f"No rate path from {from_currency} to {to_currency}")
