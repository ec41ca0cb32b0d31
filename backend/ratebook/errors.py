"""Error taxonomy shared by the pricing core, the services and the API layer.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. ``to_dict()`` is what the exception handler in
``ratebook.main`` renders.
"""

import enum


class RatebookError(Exception):
    code = "ratebook_error"
    status_code = 400

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message, **self.extra}


class ValidationError(RatebookError):
    """A rule, rate or value was rejected at write time."""

    code = "validation_error"
    status_code = 422


class InvalidRuleError(ValidationError):
    """A malformed rule reached the resolver."""

    code = "invalid_rule"


class NotFoundError(RatebookError):
    code = "not_found"
    status_code = 404


class ResolutionError(RatebookError):
    """A rule references something that no longer exists.

    Raised only to be logged and reported: the resolver skips the rule and
    keeps pricing.
    """

    code = "resolution_error"
    status_code = 409


class PricingError(RatebookError):
    code = "pricing_error"
    status_code = 422


class PromoFailReason(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    NOT_YET_VALID = "NOT_YET_VALID"
    USAGE_LIMIT = "USAGE_LIMIT"
    GUEST_LIMIT = "GUEST_LIMIT"
    MIN_NIGHTS_NOT_MET = "MIN_NIGHTS_NOT_MET"
    INACTIVE = "INACTIVE"
    MIN_AMOUNT_NOT_MET = "MIN_AMOUNT_NOT_MET"
    ROOM_TYPE_NOT_ELIGIBLE = "ROOM_TYPE_NOT_ELIGIBLE"


PROMO_MESSAGES: dict[PromoFailReason, str] = {
    PromoFailReason.NOT_FOUND: "Promo code not found.",
    PromoFailReason.EXPIRED: "This promo code has expired.",
    PromoFailReason.NOT_YET_VALID: "This promo code is not valid yet.",
    PromoFailReason.USAGE_LIMIT: "This promo code has reached its maximum usage limit.",
    PromoFailReason.GUEST_LIMIT: "You have already used this promo code the maximum number of times.",
    PromoFailReason.MIN_NIGHTS_NOT_MET: "Your stay is shorter than this promo code requires.",
    PromoFailReason.INACTIVE: "This promo code is not active.",
    PromoFailReason.MIN_AMOUNT_NOT_MET: "Your booking total is below the minimum for this promo code.",
    PromoFailReason.ROOM_TYPE_NOT_ELIGIBLE: "This promo code does not apply to the selected room.",
}


class PromoError(RatebookError):
    code = "promo_error"
    status_code = 422

    def __init__(self, reason: PromoFailReason, message: str | None = None, **extra):
        super().__init__(message or PROMO_MESSAGES[reason], reason=reason.value, **extra)
        self.reason = reason


class InsufficientPointsError(RatebookError):
    code = "insufficient_points"
    status_code = 409

    def __init__(self, required: int, balance: int, **extra):
        super().__init__(
            f"Insufficient points. Requires {required}, current balance is {balance}.",
            required=required,
            balance=balance,
            **extra,
        )
        self.required = required
        self.balance = balance


class InsufficientFundsError(RatebookError):
    code = "insufficient_funds"
    status_code = 409


class UnknownCurrencyError(RatebookError):
    code = "unknown_currency"
    status_code = 422

    def __init__(self, currency_code: str):
        super().__init__(f"Currency {currency_code} is not a configured active currency.", currency=currency_code)
        self.currency_code = currency_code


class FolioStateError(RatebookError):
    code = "folio_state"
    status_code = 409
