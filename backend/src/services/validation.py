"""
Advisory checklist run on a draft before it is finalized.

The report never blocks anything. ``surcharges_validity`` always passes and
``cgv_present`` always fails because no CGV acceptance is stored on the offer.
"""
from ..api.schemas_quote_offer import QuoteOffer
from ..api.schemas_wizard import ValidationCheck, ValidationReport, ValidationWarning


def _check(rule: str, ok: bool, failure_message: str) -> ValidationCheck:
    return ValidationCheck(rule=rule, ok=ok, message=None if ok else failure_message)


def option_count(offer: QuoteOffer) -> int:
    draft_options = len(offer.optimized_draft_data.options) if offer.optimized_draft_data else 0
    return draft_options + len(offer.options)


def validate_quote_offer(offer: QuoteOffer) -> ValidationReport:
    checks = [
        _check("dates_consistency", offer.created_date <= offer.updated_at, "Creation date is after update date"),
        _check("surcharges_validity", True, ""),
        _check("cgv_present", False, "CGV not accepted (signature or approval required before the quote is issued)"),
        _check("rates_per_container", option_count(offer) > 0, "No option defined"),
    ]
    warnings = [
        ValidationWarning(code="FREE_TIME_DEST", message="Destination free time limited to 5-7 days depending on the option"),
    ]
    return ValidationReport(checks=checks, warnings=warnings)
