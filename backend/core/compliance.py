"""Static compliance lookup for base assets.

This is an advisory allow-list, not a ruling. Assets on the list are
project-based coins generally considered permissible; anything else is
flagged for review.
"""

from dataclasses import dataclass

from core.models.signal import QUOTE_ASSET

HALAL_BASE_ASSETS: frozenset[str] = frozenset({
    "BTC", "ETH", "SOL", "BNB", "XRP", "ADA", "DOGE", "AVAX", "TRX", "DOT",
    "LINK", "MATIC", "LTC", "BCH", "ATOM", "ETC", "XLM", "HBAR", "FIL", "VET",
    "QNT", "GRT", "ALGO", "THETA", "SAND", "MANA", "AXS", "EGLD", "XTZ", "EOS",
    "NEAR", "FTM", "GALA", "LDO", "APT", "OP", "ARB", "INJ", "RNDR", "PEPE",
})

COMPLIANT_NOTE = "Project generally permissible (verify purification)"
REVIEW_NOTE = "Not on the permissible list or needs research"


@dataclass(frozen=True, slots=True)
class ComplianceTag:
    is_halal: bool
    note: str


def check_compliance(symbol: str) -> ComplianceTag:
    """Look up the compliance tag for a trading pair."""
    base_asset = symbol.removesuffix(QUOTE_ASSET)
    if base_asset in HALAL_BASE_ASSETS:
        return ComplianceTag(is_halal=True, note=COMPLIANT_NOTE)
    return ComplianceTag(is_halal=False, note=REVIEW_NOTE)
