"""Pure pricing core: no sessions, no I/O, immutable inputs."""

from ratebook.services.pricing.composer import compose, compose_detailed
from ratebook.services.pricing.currency import CurrencyTable, convert, convert_at_rate
from ratebook.services.pricing.fees import extra_person_charge, service_fee
from ratebook.services.pricing.resolver import resolve, resolve_detailed
from ratebook.services.pricing.restrictions import check_restrictions
from ratebook.services.pricing.taxes import apply_taxes

__all__ = [
    "CurrencyTable",
    "apply_taxes",
    "check_restrictions",
    "compose",
    "compose_detailed",
    "convert",
    "convert_at_rate",
    "extra_person_charge",
    "resolve",
    "resolve_detailed",
    "service_fee",
]
