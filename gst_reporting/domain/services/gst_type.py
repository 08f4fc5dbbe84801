# gst_reporting/domain/services/gst_type.py
"""
GST type resolution and supply classification.

Intra-state supplies (seller and buyer in the same state) attract
CGST + SGST; everything else attracts IGST. A missing or unrecognised
buyer state resolves to inter-state.
"""

from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum

from gst_reporting.domain.models.documents import GstType, TaxableDocument

DEFAULT_B2CL_THRESHOLD = Decimal("250000")

_GSTIN_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")

STATE_CODES: dict[str, str] = {
    "Jammu and Kashmir": "01",
    "Himachal Pradesh": "02",
    "Punjab": "03",
    "Chandigarh": "04",
    "Uttarakhand": "05",
    "Haryana": "06",
    "Delhi": "07",
    "Rajasthan": "08",
    "Uttar Pradesh": "09",
    "Bihar": "10",
    "Sikkim": "11",
    "Arunachal Pradesh": "12",
    "Nagaland": "13",
    "Manipur": "14",
    "Mizoram": "15",
    "Tripura": "16",
    "Meghalaya": "17",
    "Assam": "18",
    "West Bengal": "19",
    "Jharkhand": "20",
    "Odisha": "21",
    "Chhattisgarh": "22",
    "Madhya Pradesh": "23",
    "Gujarat": "24",
    "Dadra and Nagar Haveli and Daman and Diu": "26",
    "Maharashtra": "27",
    "Karnataka": "29",
    "Goa": "30",
    "Lakshadweep": "31",
    "Kerala": "32",
    "Tamil Nadu": "33",
    "Puducherry": "34",
    "Andaman and Nicobar Islands": "35",
    "Telangana": "36",
    "Andhra Pradesh": "37",
    "Ladakh": "38",
}

_STATE_CODES_CI = {name.casefold(): code for name, code in STATE_CODES.items()}
_STATE_NAMES = {code: name for name, code in STATE_CODES.items()}
_STATE_NAMES["96"] = "Other Countries"


class SupplyType(str, Enum):
    B2B = "B2B"
    B2CL = "B2CL"
    B2CS = "B2CS"


def _norm(state: str | None) -> str:
    return (state or "").strip().casefold()


def resolve_gst_type(seller_state: str | None, buyer_state: str | None) -> GstType:
    """Exact, case-insensitive state-name comparison; no fuzzy matching."""
    seller = _norm(seller_state)
    buyer = _norm(buyer_state)
    if seller and buyer and seller == buyer:
        return GstType.INTRA_STATE
    return GstType.INTER_STATE


def state_code(state: str | None) -> str | None:
    return _STATE_CODES_CI.get(_norm(state))


def state_label(code: str) -> str:
    """Portal label for a state code, e.g. 29-Karnataka. Unknown codes pass through."""
    name = _STATE_NAMES.get(code)
    return f"{code}-{name}" if name else code


def place_of_supply(buyer_state: str | None, seller_state: str | None = None) -> str:
    """
    "NN-State Name" token used in GSTR-1 tables.

    Falls back to the seller's state when the buyer's is unknown, and to
    "96-Other Countries" when neither is recognised.
    """
    for state in (buyer_state, seller_state):
        code = state_code(state)
        if code:
            return f"{code}-{state.strip()}"
    return "96-Other Countries"


def place_of_supply_code(buyer_state: str | None, seller_state: str | None = None) -> str:
    return place_of_supply(buyer_state, seller_state).split("-", 1)[0]


def is_valid_gstin_format(gstin: str | None) -> bool:
    """Format check only; the checksum character is not verified."""
    if not gstin:
        return False
    return bool(_GSTIN_RE.match(gstin.strip().upper()))


def classify_supply(
    document: TaxableDocument,
    b2cl_threshold: Decimal = DEFAULT_B2CL_THRESHOLD,
) -> SupplyType:
    if document.is_b2b:
        return SupplyType.B2B
    if document.gst_type == GstType.INTER_STATE and document.total_amount > b2cl_threshold:
        return SupplyType.B2CL
    return SupplyType.B2CS
