"""UPI payment links: rebuild the gateway's link into a minimal canonical form.

Some payer apps reject links that carry merchant codes, signatures or
transaction references when the payee is an unverified/personal VPA, so only
pa, pn, am, cu and tn are kept.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import parse_qsl, quote, urlsplit

UPI_SCHEME = "upi://"
DEFAULT_PAYEE_NAME = "Merchant"
DEFAULT_NOTE = "Payment"

# Same set encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


class UpiParseError(ValueError):
    pass


@dataclass(frozen=True)
class UpiLink:
    url: str
    canonical: bool  # False when the string-patch fallback was used


def format_amount(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def parse_upi_params(upi_string: str) -> dict[str, str]:
    if not isinstance(upi_string, str) or not upi_string.strip().lower().startswith(UPI_SCHEME):
        raise UpiParseError("not a upi:// link")
    try:
        parts = urlsplit(upi_string.strip())
        pairs = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError as e:
        raise UpiParseError(str(e)) from e
    params: dict[str, str] = {}
    for key, value in pairs:
        params.setdefault(key, value)
    return params


def canonical_upi_link(upi_string: str, amount: Decimal, currency: str = "INR") -> str:
    """Raise UpiParseError when the payee address cannot be recovered."""
    params = parse_upi_params(upi_string)
    pa = params.get("pa")
    if not pa:
        raise UpiParseError("missing payee address")
    pn = params.get("pn") or DEFAULT_PAYEE_NAME
    tn = params.get("tn") or DEFAULT_NOTE
    return (
        f"upi://pay?pa={pa}&pn={encode_component(pn)}"
        f"&am={format_amount(amount)}&cu={currency}&tn={encode_component(tn)}"
    )


def _set_param(link: str, key: str, value: str) -> str:
    pattern = re.compile(rf"([?&]){re.escape(key)}=[^&]*")
    if pattern.search(link):
        return pattern.sub(lambda m: f"{m.group(1)}{key}={value}", link, count=1)
    sep = "&" if "?" in link else "?"
    return f"{link}{sep}{key}={value}"


def patch_upi_amount(upi_string: str, amount: Decimal, currency: str = "INR") -> str:
    """String-level fallback: only am and cu are rewritten, everything else kept."""
    link = _set_param(upi_string, "am", format_amount(amount))
    return _set_param(link, "cu", currency)


def build_payment_link(upi_string: str, amount: Decimal, currency: str = "INR") -> UpiLink:
    try:
        return UpiLink(url=canonical_upi_link(upi_string, amount, currency), canonical=True)
    except UpiParseError:
        return UpiLink(url=patch_upi_amount(upi_string or "", amount, currency), canonical=False)
