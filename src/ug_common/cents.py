"""Integer arithmetic helpers for prices.

All prices and amounts are int minor units (cents). No float, no Decimal.
"""


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def cents_to_whole_display(cents: int) -> str:
    """Catalog price label rounded to whole dollars: 50000 -> '$500', 7550 -> '$76'.

    Halves round up, matching how the storefront has always shown prices.
    """
    dollars = (cents + 50) // 100
    return f"${dollars}"
