"""
Option totals computed from the enriched seafreight, haulage and service line items.

Known gaps kept as-is:
- percent surcharges are not applied; they are excluded from totals and listed
  in ``PricingPreview.unsupported_surcharges``
- haulage waiting hours and extra-hour prices are not folded into totals
- a flat surcharge counts once per surcharge entry, whatever its ``applies_to`` list
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from ..api.schemas_quote_offer import DraftOption, DraftOptionTotals
from ..api.schemas_wizard import (
    EnrichedWizardData,
    HaulageData,
    PricingLine,
    PricingPreview,
    PricingSubtotals,
    SeafreightData,
    ServiceData,
)

logger = logging.getLogger(__name__)

CURRENCY = "EUR"
TAX_RATE = Decimal("0.21")
_CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _is_flat(calc: Optional[str]) -> bool:
    return (calc or "flat").strip().lower() == "flat"


def seafreight_total(sf: SeafreightData) -> Decimal:
    """Sum of every container base rate plus every flat surcharge value."""
    total = sum((r.base_price for r in sf.rates), Decimal("0"))
    total += sum((s.value for s in sf.surcharges if _is_flat(s.calc)), Decimal("0"))
    return round_money(total)


def unsupported_surcharges(sf: SeafreightData) -> List[str]:
    return [f"{sf.id}:{s.code}" for s in sf.surcharges if not _is_flat(s.calc)]


def haulage_total(h: HaulageData) -> Decimal:
    return round_money(sum((p.price for p in h.pricing), Decimal("0")))


def tax_total(taxable_base: Decimal) -> Decimal:
    return round_money(taxable_base * TAX_RATE)


def select_line_items(
    enriched: EnrichedWizardData, option: Optional[DraftOption] = None
) -> Tuple[List[SeafreightData], List[HaulageData], List[ServiceData]]:
    """
    Line items an option prices. A non-empty ``*_refs`` list keeps the entries with
    those ids; an empty list (or no option) keeps every entry of that kind.
    """
    def pick(items, refs):
        if not refs:
            return list(items)
        wanted = set(refs)
        return [i for i in items if i.id in wanted]

    if option is None:
        return list(enriched.seafreights), list(enriched.haulages), list(enriched.services)
    return (
        pick(enriched.seafreights, option.seafreight_refs),
        pick(enriched.haulages, option.haulage_refs),
        pick(enriched.services, option.service_refs),
    )


def build_pricing_preview(enriched: Optional[EnrichedWizardData], option: Optional[DraftOption] = None) -> PricingPreview:
    if enriched is None:
        return PricingPreview(currency=CURRENCY)

    seafreights, haulages, services = select_line_items(enriched, option)

    lines: List[PricingLine] = []
    unsupported: List[str] = []
    taxable_base = Decimal("0")
    nontaxable_base = Decimal("0")

    for sf in seafreights:
        amount = seafreight_total(sf)
        unsupported.extend(unsupported_surcharges(sf))
        label = " ".join(p for p in (sf.carrier, sf.service) if p) or sf.id
        lines.append(PricingLine(kind="seafreight", ref=sf.id, description=f"Seafreight {label}", unit_price=amount))
        nontaxable_base += amount

    for h in haulages:
        amount = haulage_total(h)
        route = " - ".join(p for p in (h.from_location, h.to_location) if p)
        label = " ".join(p for p in (h.provider, route) if p) or h.id
        lines.append(PricingLine(kind="haulage", ref=h.id, description=f"Haulage {label}", unit_price=amount))
        nontaxable_base += amount

    for s in services:
        amount = round_money(s.price)
        lines.append(
            PricingLine(
                kind="service",
                ref=s.id,
                description=s.name,
                unit_price=amount,
                taxable=s.taxable,
                tax_rate=(s.tax_rate if s.tax_rate is not None else TAX_RATE) if s.taxable else None,
            )
        )
        if s.taxable:
            taxable_base += amount
        else:
            nontaxable_base += amount

    if unsupported:
        logger.warning(f"Percent surcharges not applied: {', '.join(unsupported)}")

    tax = tax_total(taxable_base)
    return PricingPreview(
        currency=CURRENCY,
        lines=lines,
        subtotals=PricingSubtotals(taxable_base=round_money(taxable_base), nontaxable_base=round_money(nontaxable_base)),
        tax_total=tax,
        grand_total=round_money(taxable_base + nontaxable_base + tax),
        unsupported_surcharges=unsupported,
    )


def compute_option_totals(enriched: Optional[EnrichedWizardData], option: Optional[DraftOption] = None) -> DraftOptionTotals:
    preview = build_pricing_preview(enriched, option)

    def subtotal(kind: str) -> Decimal:
        return round_money(sum((l.unit_price * l.qty for l in preview.lines if l.kind == kind), Decimal("0")))

    return DraftOptionTotals(
        seafreight_total=subtotal("seafreight"),
        haulage_total=subtotal("haulage"),
        miscellaneous_total=subtotal("service"),
        grand_total=preview.grand_total,
        currency=preview.currency,
    )
