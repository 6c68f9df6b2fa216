"""
Tests de la liste de contrôles consultative d'un brouillon.
"""
from datetime import timedelta

from ..src.api.schemas_quote_offer import CreateQuoteOffer, DraftOption
from ..src.services.validation import validate_quote_offer


def _checks(report):
    return {c.rule: c for c in report.checks}


def test_fresh_draft_has_no_rates(repo):
    """Un brouillon sans option échoue sur rates_per_container."""
    offer = repo.require(repo.create_quote_offer(CreateQuoteOffer()))
    checks = _checks(validate_quote_offer(offer))

    assert checks["rates_per_container"].ok is False
    assert checks["rates_per_container"].message


def test_one_option_flips_rates_check(repo):
    """Ajouter une option fait passer rates_per_container à vrai."""
    offer_id = repo.create_quote_offer(CreateQuoteOffer())
    repo.add_draft_option(offer_id, DraftOption(option_id="opt-1"))

    checks = _checks(validate_quote_offer(repo.require(offer_id)))
    assert checks["rates_per_container"].ok is True
    assert checks["rates_per_container"].message is None


def test_fixed_checks_and_warning(repo):
    """Contrôles figés : surcharges toujours OK, CGV toujours en échec, avertissement FREE_TIME_DEST."""
    offer = repo.require(repo.create_quote_offer(CreateQuoteOffer()))
    report = validate_quote_offer(offer)
    checks = _checks(report)

    assert [c.rule for c in report.checks] == ["dates_consistency", "surcharges_validity", "cgv_present", "rates_per_container"]
    assert checks["dates_consistency"].ok is True
    assert checks["dates_consistency"].message is None
    assert checks["surcharges_validity"].ok is True
    assert checks["surcharges_validity"].message is None
    assert checks["cgv_present"].ok is False
    assert checks["cgv_present"].message
    assert [w.code for w in report.warnings] == ["FREE_TIME_DEST"]


def test_dates_inconsistent(repo):
    offer = repo.require(repo.create_quote_offer(CreateQuoteOffer()))
    offer.updated_at = offer.created_date - timedelta(minutes=1)

    check = _checks(validate_quote_offer(offer))["dates_consistency"]
    assert check.ok is False
    assert check.message == "Creation date is after update date"
