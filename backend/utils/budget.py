"""
Budget band parsing and formatting.

Budgets are stored in rupees. The listing filters and the UI speak in bands
such as 'Under ₹50L' or '₹1Cr - ₹2Cr' (L = lakh, Cr = crore).
"""
import re
from typing import Optional, Tuple

LAKH = 100_000
CRORE = 10_000_000

BUDGET_BANDS = {
    'Under ₹50L': (None, 50 * LAKH),
    '₹50L - ₹1Cr': (50 * LAKH, CRORE),
    '₹1Cr - ₹2Cr': (CRORE, 2 * CRORE),
    '₹2Cr - ₹5Cr': (2 * CRORE, 5 * CRORE),
    'Above ₹5Cr': (5 * CRORE, None),
}

_AMOUNT = re.compile(r'^\s*₹?\s*(\d+(?:\.\d+)?)\s*(L|Cr)?\s*$', re.IGNORECASE)


def _parse_amount(text: str) -> Optional[int]:
    match = _AMOUNT.match(text)
    if not match:
        return None
    value = float(match.group(1))
    unit = (match.group(2) or '').lower()
    if unit == 'l':
        value *= LAKH
    elif unit == 'cr':
        value *= CRORE
    return int(value)


def parse_budget_band(band: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """
    Convert a budget filter into a (minimum, maximum) rupee range.

    Accepts one of the BUDGET_BANDS labels or a 'min-max' pair where each side
    is a plain number or carries an L/Cr suffix ('50L-1Cr', '100000-500000').
    Either bound may be None. Unrecognised input yields (None, None).
    """
    if not band or not band.strip():
        return None, None

    band = band.strip()
    if band in BUDGET_BANDS:
        return BUDGET_BANDS[band]

    if '-' in band:
        low_text, high_text = band.split('-', 1)
        low = _parse_amount(low_text) if low_text.strip() else None
        high = _parse_amount(high_text) if high_text.strip() else None
        if low is not None and high is not None and low > high:
            low, high = high, low
        return low, high

    return None, None


def format_budget(amount: Optional[float]) -> str:
    """Format a rupee amount for display, e.g. 4500000 -> '₹45L', 25000000 -> '₹2.5Cr'"""
    if not amount:
        return 'Not specified'
    if amount >= CRORE:
        return f"₹{amount / CRORE:g}Cr"
    if amount >= LAKH:
        return f"₹{amount / LAKH:g}L"
    return f"₹{int(amount):,}"
