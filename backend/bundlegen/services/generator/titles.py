"""
Identity titles, handles and SKUs for Seat Units and Bundles.

The title is the identity key: re-discovery always rebuilds the expected title and looks it up,
so every reader and writer must go through these builders.
"""
import re
import unicodedata

from bundlegen.core.constants import (
    BUNDLE_TITLE_RE,
    MODE_TRIPLE,
    MODE_UNICO,
    SEAT_SKU_PREFIX,
    TICKET_ADULTO,
    TICKET_BAMBINO,
    TICKET_HANDICAP,
    TICKET_UNICO,
    TICKETS_BY_MODE,
    TITLE_SEPARATOR,
)
from bundlegen.services.shopify.types import ProductNode, VariantNode

# Substring -> ticket type, checked in this order
_LABEL_KEYWORDS = (
    ("unico", TICKET_UNICO),
    ("adulto", TICKET_ADULTO),
    ("bambino", TICKET_BAMBINO),
    ("handicap", TICKET_HANDICAP),
)


def seat_unit_title(base: str, date_str: str) -> str:
    return f"{base}{TITLE_SEPARATOR}{date_str}"


def bundle_title(base: str, date_str: str, time_str: str) -> str:
    return f"{base}{TITLE_SEPARATOR}{date_str} {normalize_time(time_str)}"


def seat_sku(date_str: str, time_str: str) -> str:
    return f"{SEAT_SKU_PREFIX}-{date_str}-{normalize_time(time_str).replace(':', '')}"


def slugify(value: str) -> str:
    s = unicodedata.normalize("NFKD", value or "")
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return re.sub(r"[^a-zA-Z0-9]+", "-", s).strip("-").lower()


def normalize_time(value: str) -> str:
    """'9:5' / '09:05' -> '09:05'."""
    parts = (value or "").strip().split(":")
    try:
        hh = int(parts[0]) if parts[0] else 0
        mm = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        return value
    return f"{hh:02d}:{mm:02d}"


def parse_bundle_title(title: str) -> tuple[str, str] | None:
    """(YYYY-MM-DD, HH:MM) from a bundle title; DD/MM/YYYY dates are converted. None when it does not match."""
    m = BUNDLE_TITLE_RE.search((title or "").strip())
    if not m:
        return None
    raw_date, raw_time = m.group(1), m.group(2)
    if "/" in raw_date:
        dd, mm, yyyy = raw_date.split("/")
        raw_date = f"{yyyy}-{mm}-{dd}"
    return raw_date, normalize_time(raw_time)


def ticket_for_label(label: str) -> str | None:
    """Ticket type from a variant label by lowercase substring ('Biglietto unico' -> 'unico')."""
    lowered = (label or "").lower()
    for keyword, ticket in _LABEL_KEYWORDS:
        if keyword in lowered:
            return ticket
    return None


def map_variants(variants: list[VariantNode]) -> dict[str, VariantNode]:
    """Ticket type -> variant, by label substring. Unrecognised labels are ignored."""
    out: dict[str, VariantNode] = {}
    for v in variants:
        ticket = ticket_for_label(v.label())
        if ticket and ticket not in out:
            out[ticket] = v
    return out


def variant_map_for(product: ProductNode) -> tuple[str | None, dict[str, str]]:
    """(mode, ticket -> variant id). 'unico' wins when both kinds are present."""
    by_ticket = {t: v.id for t, v in map_variants(product.variant_list()).items()}
    if TICKET_UNICO in by_ticket:
        return MODE_UNICO, {TICKET_UNICO: by_ticket[TICKET_UNICO]}
    triple = {t: by_ticket[t] for t in TICKETS_BY_MODE[MODE_TRIPLE] if t in by_ticket}
    if triple:
        return MODE_TRIPLE, triple
    return None, {}
