"""IDR number formatting and parsing for form inputs, tables and charts."""

from __future__ import annotations


def _group_thousands(value: int) -> str:
    # id-ID groups thousands with "."
    return f"{abs(int(value)):,}".replace(",", ".")


def format_number(value) -> str:
    """
    Thousand-separated number for an input box.

    Zero and unparseable values render as "" so the box shows its
    placeholder instead of "0".
    """
    if isinstance(value, str):
        number = parse_formatted_number(value)
    else:
        try:
            number = int(value)
        except (TypeError, ValueError):
            return ""
    if number == 0:
        return ""
    sign = "-" if number < 0 else ""
    return f"{sign}{_group_thousands(number)}"


def parse_formatted_number(text) -> int:
    """Parse "1.500.000" (or "1,500,000") back to 1500000; 0 when invalid."""
    if text is None:
        return 0
    if isinstance(text, (int, float)):
        return int(text)
    clean = str(text).strip().replace(".", "").replace(",", "").replace(" ", "")
    if clean.lower().startswith("rp"):
        clean = clean[2:]
    try:
        return int(clean)
    except ValueError:
        return 0


def format_currency(value) -> str:
    """Full rupiah amount, e.g. "Rp 1.500.000"."""
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        number = 0
    sign = "-" if number < 0 else ""
    return f"{sign}Rp {_group_thousands(number)}"


def format_compact(
    value,
    prefix: str = "IDR ",
    bn_digits: int = 1,
    mn_digits: int = 0
) -> str:
    """
    Compact amount for stat cards, tables and chart axes.

    >= 1 billion -> "IDR 1.5Bn", >= 1 million -> "IDR 12Mn",
    otherwise the grouped number ("IDR 950.000").
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if number >= 1_000_000_000:
        return f"{prefix}{number / 1_000_000_000:.{bn_digits}f}Bn"
    if number >= 1_000_000:
        return f"{prefix}{number / 1_000_000:.{mn_digits}f}Mn"
    sign = "-" if number < 0 else ""
    return f"{prefix}{sign}{_group_thousands(int(number))}"
