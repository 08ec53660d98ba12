"""
Centralized constants for the slot generator and the calendar feeds.

Change tags, title format or seat weights here instead of scattering literals across
reconcilers, feed assembly and routes.
"""
import re

# Product tags that mark the two product families (also used to narrow title lookups)
SEAT_UNIT_TAG = "SeatUnit"
BUNDLE_TAG = "Bundle"

# Title format: "<base> — YYYY-MM-DD" (seat unit, one per date) and "<base> — YYYY-MM-DD HH:MM" (bundle, one per slot)
TITLE_SEPARATOR = " — "

# Parses the date/time suffix of a bundle title. Accepts em dash or hyphen, ISO or DD/MM/YYYY dates.
BUNDLE_TITLE_RE = re.compile(r"(?:—|-)\s*(\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4})\s+(\d{1,2}:\d{2})$")

# Ticket types and their variant labels (variant title / option value)
TICKET_UNICO = "unico"
TICKET_ADULTO = "adulto"
TICKET_BAMBINO = "bambino"
TICKET_HANDICAP = "handicap"
TICKET_TYPES = (TICKET_UNICO, TICKET_ADULTO, TICKET_BAMBINO, TICKET_HANDICAP)

VARIANT_LABELS = {
    TICKET_UNICO: "Biglietto unico",
    TICKET_ADULTO: "Adulto",
    TICKET_BAMBINO: "Bambino",
    TICKET_HANDICAP: "Handicap",
}

# Seats consumed per ticket (component quantity of the bundle -> seat unit link). Policy, not price data.
SEATS_PER_TICKET = {
    TICKET_UNICO: 1,
    TICKET_ADULTO: 1,
    TICKET_BAMBINO: 1,
    TICKET_HANDICAP: 2,
}

MODE_UNICO = "unico"
MODE_TRIPLE = "triple"
TICKETS_BY_MODE = {
    MODE_UNICO: (TICKET_UNICO,),
    MODE_TRIPLE: (TICKET_ADULTO, TICKET_BAMBINO, TICKET_HANDICAP),
}

# Day types
DAY_WEEKDAY = "weekday"
DAY_FRIDAY = "friday"
DAY_SATURDAY = "saturday"
DAY_SUNDAY = "sunday"
DAY_HOLIDAY = "holiday"
DAY_TYPES = (DAY_WEEKDAY, DAY_FRIDAY, DAY_SATURDAY, DAY_SUNDAY, DAY_HOLIDAY)

# Response size cap: preview rows returned by apply / dry-run
PREVIEW_LIMIT = 10

# Bundle variant metafields (namespace from settings.ticket_metafield_namespace)
SEAT_UNIT_METAFIELD_KEY = "seat_unit"
SEAT_UNIT_METAFIELD_TYPE = "variant_reference"
SEATS_PER_TICKET_METAFIELD_KEY = "seats_per_ticket"

# Seat variant option name and SKU prefix
SEAT_OPTION_NAME = "Title"
SEAT_SKU_PREFIX = "SU"

# Inventory writes
INVENTORY_QUANTITY_NAME = "available"
INVENTORY_REASON = "correction"
INVENTORY_REFERENCE_URI = "gid://bundlegen/Generate/{stamp}"

# Component repair batch size (parents per productVariantRelationshipBulkUpdate)
REPAIR_CHUNK_SIZE = 20

# Per-slot warnings (shown to operators as-is)
WARN_NO_PRICE = "Nessun listino prezzi per questo slot"
WARN_AMBIGUOUS_PRICE = "Struttura prezzi ambigua: definisci 'unico' oppure almeno uno tra adulto/bambino/handicap"
WARN_MIXED_PRICE = "Listino misto: 'unico' ha precedenza su adulto/bambino/handicap"
WARN_FEED_NO_TRIPLE_PRICE = "Il feed richiede adulto/bambino/handicap ma il listino non ha prezzi per questi biglietti: slot non modificato"
WARN_MODE_CONFLICT = "Bundle esistente con varianti di un'altra modalità: slot non modificato"
WARN_FEED_VARIANT_MISMATCH = "Variante {ticket} dal feed ({feed_id}) diversa da quella sul catalogo ({catalog_id})"
