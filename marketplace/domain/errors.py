# marketplace/domain/errors.py
"""
Bledy domenowe.

Serwisy nie znaja kodow HTTP - rzucaja ServiceError z odpowiednim ErrorKind,
a warstwa api mapuje kind na status (patrz marketplace.api.errors).
"""
from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    OUT_OF_STOCK = "out_of_stock"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"
    EMPTY_CART = "empty_cart"
    DOWNSTREAM_FAILURE = "downstream_failure"
    CONFLICT = "conflict"


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.kind.value,
            "message": self.message,
            "details": self.details or None,
        }


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND


class OutOfStock(ServiceError):
    kind = ErrorKind.OUT_OF_STOCK


class Forbidden(ServiceError):
    kind = ErrorKind.FORBIDDEN


class InvalidInput(ServiceError):
    kind = ErrorKind.INVALID_INPUT


class EmptyCart(ServiceError):
    kind = ErrorKind.EMPTY_CART


class DownstreamFailure(ServiceError):
    kind = ErrorKind.DOWNSTREAM_FAILURE


class Conflict(ServiceError):
    kind = ErrorKind.CONFLICT


class CartNotReady(Conflict):
    """Koszyk ma pozycje nieaktywne / bez stanu / usuniete z katalogu."""

    def __init__(self, report):
        super().__init__(
            "Cart contains items that cannot be ordered",
            issues=[issue.to_dict() for issue in report.blocking_issues],
        )
        self.report = report


class PriceChanged(Conflict):
    """Ceny zmienily sie od dodania - klient musi je potwierdzic."""

    def __init__(self, report):
        super().__init__(
            "Prices changed since items were added, confirm prices before checkout",
            issues=[issue.to_dict() for issue in report.price_changes],
        )
        self.report = report
