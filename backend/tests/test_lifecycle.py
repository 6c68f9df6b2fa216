"""
Tests du cycle de vie : finalisation, approbation client, changement de statut et gardes.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from ..src.api.schemas_quote import (
    ChangeQuoteStatusRequest,
    ClientApprovalRequest,
    FinalizeDraftRequest,
    FinalizeOptionRequest,
)
from ..src.api.schemas_quote_offer import (
    CreateQuoteOffer,
    DraftOption,
    OptimizedDraftData,
    OptionTotals,
    QuoteOfferStatus,
)
from ..src.services import lifecycle
from ..src.services.errors import QuoteOfferStateError
from ..src.services.lifecycle import OperationClass, can_change_status, is_allowed


def _draft(repo, enriched=None):
    offer_id = repo.create_quote_offer(CreateQuoteOffer(optimized_draft_data=OptimizedDraftData(enriched_data=enriched)))
    return repo.require(offer_id)


def _sent_quote(repo):
    offer = _draft(repo)
    lifecycle.finalize_draft(offer, FinalizeDraftRequest(options=[FinalizeOptionRequest(option_id="a")], preferred_option_id="a"))
    repo.save(offer)
    return repo.require(offer.id)


def _finalize(option_ids, preferred):
    return FinalizeDraftRequest(
        options=[FinalizeOptionRequest(option_id=o) for o in option_ids],
        preferred_option_id=preferred,
    )


# ---- Transition table ----

@pytest.mark.parametrize("status", list(QuoteOfferStatus))
def test_operation_classes(status):
    is_draft = status == QuoteOfferStatus.DRAFT
    assert is_allowed(status, OperationClass.DRAFT_ONLY) is is_draft
    assert is_allowed(status, OperationClass.QUOTE_ONLY) is not is_draft


def test_can_change_status_never_involves_draft():
    assert can_change_status(QuoteOfferStatus.SENT_TO_CLIENT, QuoteOfferStatus.ACCEPTED)
    assert can_change_status(QuoteOfferStatus.ACCEPTED, QuoteOfferStatus.REJECTED)
    assert not can_change_status(QuoteOfferStatus.DRAFT, QuoteOfferStatus.SENT_TO_CLIENT)
    assert not can_change_status(QuoteOfferStatus.ACCEPTED, QuoteOfferStatus.DRAFT)


# ---- Finalisation ----

@pytest.mark.parametrize("option_ids", [[], ["a", "b", "c", "d"]])
def test_finalize_rejects_option_count(repo, option_ids):
    """0 ou 4 options : refus, le brouillon reste intact."""
    offer = _draft(repo)
    before = offer.model_dump()

    with pytest.raises(QuoteOfferStateError, match="between 1 and 3 options"):
        lifecycle.finalize_draft(offer, _finalize(option_ids, option_ids[0] if option_ids else "a"))
    assert offer.model_dump() == before


def test_finalize_rejects_unknown_preferred_option(repo):
    offer = _draft(repo)
    before = offer.model_dump()

    with pytest.raises(QuoteOfferStateError, match="Preferred option must exist"):
        lifecycle.finalize_draft(offer, _finalize(["a", "b"], "z"))
    assert offer.model_dump() == before


def test_finalize_snapshots_options(repo, enriched_data):
    """Finalisation : statut SENT_TO_CLIENT, options figées, option préférée en position 1-based."""
    offer = _draft(repo, enriched_data)
    offer_id = offer.id
    repo.add_draft_option(offer_id, DraftOption(option_id="opt-1", description="All in"))
    offer = repo.require(offer_id)

    request = FinalizeDraftRequest(
        options=[
            FinalizeOptionRequest(option_id="manual", description="Manual", totals=OptionTotals(grand_total=Decimal("999.00"))),
            FinalizeOptionRequest(option_id="opt-1"),
        ],
        preferred_option_id="opt-1",
        quote_comments="Valid for two weeks",
    )
    lifecycle.finalize_draft(offer, request)
    repo.save(offer)
    quote = repo.require(offer_id)

    assert quote.status == QuoteOfferStatus.SENT_TO_CLIENT
    assert quote.selected_option == 2
    assert quote.comment == "Valid for two weeks"
    assert [o.option_id for o in quote.options] == ["manual", "opt-1"]
    assert quote.options[0].totals.grand_total == Decimal("999.00")
    assert quote.options[1].description == "All in"
    assert quote.options[1].totals.grand_total == Decimal("4741.65")
    assert quote.expiration_date is not None


def test_finalize_default_expiration(repo):
    offer = _draft(repo)
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)
    lifecycle.finalize_draft(offer, _finalize(["a"], "a"), now=now)
    assert offer.expiration_date == now + timedelta(days=30)


def test_quote_options_are_immutable(repo):
    quote = _sent_quote(repo)
    with pytest.raises(ValidationError):
        quote.options[0].description = "changed"


def test_finalize_twice_is_refused(repo):
    quote = _sent_quote(repo)
    before = quote.model_dump()
    with pytest.raises(QuoteOfferStateError, match="Only drafts can be finalized"):
        lifecycle.finalize_draft(quote, _finalize(["a"], "a"))
    assert quote.model_dump() == before


# ---- Approbation client ----

@pytest.mark.parametrize("approval,expected", [("accepted", QuoteOfferStatus.ACCEPTED), ("REJECTED", QuoteOfferStatus.REJECTED)])
def test_client_approval(repo, approval, expected):
    quote = _sent_quote(repo)
    quote.comment = "Sent"
    lifecycle.apply_client_approval(quote, ClientApprovalRequest(approval=approval, comments="ok for us", selected_option_id=1))

    assert quote.status == expected
    assert quote.client_approval == approval
    assert quote.comment == "Sent\n[Client] ok for us"
    assert quote.selected_option == 1


def test_client_approval_invalid_value(repo):
    quote = _sent_quote(repo)
    before = quote.model_dump()
    with pytest.raises(QuoteOfferStateError, match="Invalid approval value"):
        lifecycle.apply_client_approval(quote, ClientApprovalRequest(approval="maybe"))
    assert quote.model_dump() == before


def test_client_approval_on_draft_is_refused(repo):
    offer = _draft(repo)
    before = offer.model_dump()
    with pytest.raises(QuoteOfferStateError, match="Cannot approve draft"):
        lifecycle.apply_client_approval(offer, ClientApprovalRequest(approval="accepted"))
    assert offer.model_dump() == before


# ---- Changement de statut ----

def test_change_status(repo):
    quote = _sent_quote(repo)
    lifecycle.change_status(quote, ChangeQuoteStatusRequest(new_status="pending_approval"))
    assert quote.status == QuoteOfferStatus.PENDING_APPROVAL


def test_terminal_status_can_still_change(repo):
    """Aucune garde sur les états terminaux : ACCEPTED peut passer à REJECTED."""
    quote = _sent_quote(repo)
    lifecycle.change_status(quote, ChangeQuoteStatusRequest(new_status="ACCEPTED"))
    lifecycle.change_status(quote, ChangeQuoteStatusRequest(new_status="REJECTED"))
    assert quote.status == QuoteOfferStatus.REJECTED


@pytest.mark.parametrize("target,message", [("DRAFT", "back to draft"), ("NOPE", "Invalid status")])
def test_change_status_rejected_targets(repo, target, message):
    quote = _sent_quote(repo)
    with pytest.raises(QuoteOfferStateError, match=message):
        lifecycle.change_status(quote, ChangeQuoteStatusRequest(new_status=target))
    assert quote.status == QuoteOfferStatus.SENT_TO_CLIENT


def test_change_status_on_draft_is_refused(repo):
    offer = _draft(repo)
    with pytest.raises(QuoteOfferStateError, match="Cannot modify draft status"):
        lifecycle.change_status(offer, ChangeQuoteStatusRequest(new_status="SENT_TO_CLIENT"))
    assert offer.status == QuoteOfferStatus.DRAFT


# ---- Gardes des opérations réservées aux brouillons ----

def test_draft_only_operations_leave_quote_untouched(repo):
    """Sur un devis finalisé, les opérations de brouillon échouent sans rien écrire."""
    quote = _sent_quote(repo)
    stored_before = repo.require(quote.id).model_dump()

    with pytest.raises(QuoteOfferStateError, match="Cannot modify non-draft items"):
        repo.add_draft_option(quote.id, DraftOption(option_id="late"))
    with pytest.raises(QuoteOfferStateError, match="Cannot modify non-draft items"):
        repo.update_wizard_data(quote.id, OptimizedDraftData())
    with pytest.raises(QuoteOfferStateError, match="Cannot modify non-draft items"):
        repo.delete_draft_option(quote.id, "a")

    assert repo.require(quote.id).model_dump() == stored_before
