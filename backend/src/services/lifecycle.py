"""
Quote offer lifecycle: which operations a status allows, and the transitions out of DRAFT.

States: DRAFT -> SENT_TO_CLIENT (finalize) -> ACCEPTED | REJECTED (client approval),
plus a generic status change that may target anything except DRAFT. Nothing else
is guarded: ACCEPTED, REJECTED and EXPIRED quotes can still be moved to another
status.

Every function validates before touching the offer, so a rejected call leaves it
unchanged.
"""
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from ..api.schemas_quote import ChangeQuoteStatusRequest, ClientApprovalRequest, FinalizeDraftRequest
from ..api.schemas_quote_offer import OptionTotals, QuoteOffer, QuoteOfferStatus, QuoteOption
from ..config import DEFAULT_QUOTE_VALIDITY_DAYS
from .errors import QuoteOfferStateError
from .pricing import compute_option_totals

logger = logging.getLogger(__name__)

MIN_OPTIONS = 1
MAX_OPTIONS = 3

# Messages returned to API callers
NON_DRAFT_MODIFY = "Cannot modify non-draft items"
NON_DRAFT_UPDATE = "Cannot update non-draft items"
NON_DRAFT_VALIDATE = "Cannot validate non-draft items"
NON_DRAFT_DELETE = "Cannot delete non-draft items"
NOT_A_DRAFT = "Item is not a draft"
DRAFT_ACCESS = "Cannot access draft through quotes endpoint"
DRAFT_DELETE = "Cannot delete draft through quotes endpoint"
DRAFT_STATUS = "Cannot modify draft status through quotes endpoint"
DRAFT_APPROVAL = "Cannot approve draft"
ONLY_DRAFTS_FINALIZED = "Only drafts can be finalized"


class OperationClass(str, Enum):
    DRAFT_ONLY = "draft_only"
    QUOTE_ONLY = "quote_only"


def is_allowed(current: QuoteOfferStatus, operation_class: OperationClass) -> bool:
    if operation_class == OperationClass.DRAFT_ONLY:
        return current == QuoteOfferStatus.DRAFT
    if operation_class == OperationClass.QUOTE_ONLY:
        return current != QuoteOfferStatus.DRAFT
    return False


def ensure_allowed(offer: QuoteOffer, operation_class: OperationClass, message: str) -> None:
    if not is_allowed(offer.status, operation_class):
        logger.warning(f"Quote offer {offer.id} in status {offer.status.value}: {message}")
        raise QuoteOfferStateError(message)


def can_change_status(current: QuoteOfferStatus, target: QuoteOfferStatus) -> bool:
    return current != QuoteOfferStatus.DRAFT and target != QuoteOfferStatus.DRAFT


def parse_status(value: str) -> QuoteOfferStatus:
    """Status from its name, case-insensitive."""
    try:
        return QuoteOfferStatus[(value or "").strip().upper()]
    except KeyError:
        raise QuoteOfferStateError("Invalid status")


def finalize_draft(offer: QuoteOffer, request: FinalizeDraftRequest, now: Optional[datetime] = None) -> QuoteOffer:
    """
    Turn a draft into a quote sent to the client.

    Each requested option becomes an immutable QuoteOption. Its totals are
    recomputed from the draft's enriched data when the id names a draft option,
    otherwise the totals given in the request are kept (zero when absent).

    Raises:
        QuoteOfferStateError: not a draft, option count outside 1-3, or the
            preferred option is not among the requested ones
    """
    if not is_allowed(offer.status, OperationClass.DRAFT_ONLY):
        logger.warning(f"Finalize refused for quote offer {offer.id} in status {offer.status.value}")
        raise QuoteOfferStateError(ONLY_DRAFTS_FINALIZED)

    if not (MIN_OPTIONS <= len(request.options) <= MAX_OPTIONS):
        raise QuoteOfferStateError(f"A quote must have between {MIN_OPTIONS} and {MAX_OPTIONS} options")

    requested_ids = [o.option_id for o in request.options]
    if request.preferred_option_id not in requested_ids:
        raise QuoteOfferStateError("Preferred option must exist in options list")

    now = now or datetime.now(timezone.utc)
    draft = offer.optimized_draft_data
    draft_options = {o.option_id: o for o in (draft.options if draft else [])}
    enriched = draft.enriched_data if draft else None

    snapshots = []
    for req in request.options:
        draft_option = draft_options.get(req.option_id)
        if draft_option is not None:
            totals = OptionTotals(**compute_option_totals(enriched, draft_option).model_dump())
            description = req.description or draft_option.description or draft_option.name
        else:
            totals = req.totals or OptionTotals()
            description = req.description
        snapshots.append(QuoteOption(option_id=req.option_id, description=description, totals=totals))

    offer.options = snapshots
    offer.selected_option = requested_ids.index(request.preferred_option_id) + 1
    offer.comment = request.quote_comments if request.quote_comments is not None else offer.comment
    offer.expiration_date = request.expiration_date or now + timedelta(days=DEFAULT_QUOTE_VALIDITY_DAYS)
    offer.status = QuoteOfferStatus.SENT_TO_CLIENT
    if draft is not None:
        draft.preferred_option_id = request.preferred_option_id
        draft.wizard.current_step = 7
        draft.wizard.status = "finalized"
        draft.wizard.last_modified = now

    logger.info(f"Draft {offer.id} finalized as quote {offer.quote_offer_number} with {len(snapshots)} option(s)")
    return offer


def apply_client_approval(offer: QuoteOffer, request: ClientApprovalRequest) -> QuoteOffer:
    ensure_allowed(offer, OperationClass.QUOTE_ONLY, DRAFT_APPROVAL)

    approval = (request.approval or "").strip().lower()
    if approval == "accepted":
        new_status = QuoteOfferStatus.ACCEPTED
    elif approval == "rejected":
        new_status = QuoteOfferStatus.REJECTED
    else:
        raise QuoteOfferStateError("Invalid approval value")

    offer.comment = (offer.comment or "") + "\n[Client] " + (request.comments or "")
    if request.selected_option_id is not None:
        offer.selected_option = request.selected_option_id
    offer.client_approval = request.approval
    offer.status = new_status

    logger.info(f"Client approval '{approval}' recorded for quote {offer.id}")
    return offer


def change_status(offer: QuoteOffer, request: ChangeQuoteStatusRequest) -> QuoteOffer:
    ensure_allowed(offer, OperationClass.QUOTE_ONLY, DRAFT_STATUS)

    target = parse_status(request.new_status)
    if not can_change_status(offer.status, target):
        raise QuoteOfferStateError("Cannot change quote back to draft")

    previous = offer.status
    offer.status = target
    reason = f" ({request.reason})" if request.reason else ""
    logger.info(f"Quote {offer.id} status changed {previous.value} -> {target.value}{reason}")
    return offer
