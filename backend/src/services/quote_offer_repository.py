"""
CRUD, search and sub-resource operations on the QuoteOffer aggregate.

Every mutation loads the whole aggregate, changes it in memory and writes the
whole document back. Two writers on the same id therefore race and the last
write wins.
"""
import logging
import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..api.schemas_quote_offer import (
    AttachedFile,
    CreateQuoteOffer,
    DraftOption,
    OptimizedDraftData,
    QuoteOffer,
    QuoteOfferPatch,
    QuoteOfferSearch,
    QuoteOfferSearchResult,
    QuoteOfferStats,
    QuoteOfferStatus,
    QuoteOfferSummary,
)
from ..models_quote import QuoteOfferRecord
from .document_store import Contains, DocumentStore, Eq, Ne, Range
from .errors import QuoteOfferNotFoundError
from .lifecycle import NON_DRAFT_MODIFY, OperationClass, ensure_allowed
from .pricing import compute_option_totals
from .quote_numbers import QuoteNumberSequence

logger = logging.getLogger(__name__)

LIST_LIMIT = 100

# Accepted sort keys (lowercased, underscores removed) -> column
SORT_COLUMNS = {
    "createddate": "created_date",
    "createdat": "created_date",
    "updatedat": "updated_at",
    "client": "client_number",
    "clientnumber": "client_number",
    "quotenumber": "quote_offer_number",
    "quoteoffernumber": "quote_offer_number",
    "status": "status",
}
DEFAULT_SORT = ("created_date", True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[str, bool]:
    """Unknown keys fall back to newest first."""
    column = SORT_COLUMNS.get((sort_by or "").replace("_", "").lower())
    if column is None:
        return DEFAULT_SORT
    return column, (sort_order or "").strip().lower() == "desc"


def _mirror(offer: QuoteOffer) -> Dict:
    return {
        "request_quote_id": offer.request_quote_id,
        "client_number": offer.client_number,
        "email_user": offer.email_user,
        "comment": offer.comment,
        "status": offer.status.value,
        "quote_offer_number": offer.quote_offer_number,
        "created_date": offer.created_date,
        "updated_at": offer.updated_at,
        "expiration_date": offer.expiration_date,
    }


def to_summary(offer: QuoteOffer) -> QuoteOfferSummary:
    grand_total = None
    currency = "EUR"
    if 1 <= offer.selected_option <= len(offer.options):
        totals = offer.options[offer.selected_option - 1].totals
        grand_total = totals.grand_total
        currency = totals.currency
    draft_options = len(offer.optimized_draft_data.options) if offer.optimized_draft_data else 0
    return QuoteOfferSummary(
        id=offer.id,
        request_quote_id=offer.request_quote_id,
        client_number=offer.client_number,
        email_user=offer.email_user,
        status=offer.status,
        quote_offer_number=offer.quote_offer_number,
        created_date=offer.created_date,
        updated_at=offer.updated_at,
        expiration_date=offer.expiration_date,
        grand_total=grand_total,
        currency=currency,
        options_count=len(offer.options) or draft_options,
    )


class QuoteOfferRepository:
    def __init__(self, db: Session, sequence: QuoteNumberSequence):
        self.store: DocumentStore[QuoteOffer] = DocumentStore(db, QuoteOfferRecord, QuoteOffer, _mirror, DEFAULT_SORT)
        self.sequence = sequence

    @staticmethod
    def read_max_number(db: Session) -> Optional[int]:
        return DocumentStore(db, QuoteOfferRecord, QuoteOffer, _mirror).max_value("quote_offer_number")

    # ---- Core CRUD ----

    def create_quote_offer(self, data: CreateQuoteOffer) -> str:
        now = utcnow()
        draft = data.optimized_draft_data or OptimizedDraftData()
        if draft.wizard.last_modified is None:
            draft.wizard.last_modified = now
        offer = QuoteOffer(
            id=str(uuid.uuid4()),
            request_quote_id=data.request_quote_id,
            client_number=data.client_number,
            email_user=data.email_user,
            comment=data.comment,
            status=QuoteOfferStatus.DRAFT,
            quote_offer_number=self.sequence.next(),
            selected_option=0,
            created_date=now,
            updated_at=now,
            optimized_draft_data=draft,
        )
        self.store.create(offer)
        logger.info(f"Quote offer {offer.id} created as draft number {offer.quote_offer_number}")
        return offer.id

    def get_quote_offer(self, quote_offer_id: str) -> Optional[QuoteOffer]:
        return self.store.get_by_id(quote_offer_id)

    def require(self, quote_offer_id: str) -> QuoteOffer:
        offer = self.store.get_by_id(quote_offer_id)
        if offer is None:
            logger.warning(f"Quote offer {quote_offer_id} not found")
            raise QuoteOfferNotFoundError(quote_offer_id)
        return offer

    def update_quote_offer(self, quote_offer_id: str, patch: QuoteOfferPatch) -> bool:
        """Merge the non-None fields of ``patch``; a field cannot be cleared this way."""
        offer = self.store.get_by_id(quote_offer_id)
        if offer is None:
            return False
        changes = {
            name: getattr(patch, name)
            for name in QuoteOfferPatch.model_fields
            if getattr(patch, name) is not None
        }
        merged = offer.model_copy(update=changes)
        return self.save(merged)

    def save(self, offer: QuoteOffer) -> bool:
        offer.updated_at = utcnow()
        return self.store.update(offer.id, offer)

    def delete_quote_offer(self, quote_offer_id: str) -> bool:
        deleted = self.store.delete(quote_offer_id)
        if deleted:
            logger.info(f"Quote offer {quote_offer_id} deleted")
        return deleted

    # ---- Search ----

    def search_quote_offers(self, search: QuoteOfferSearch) -> QuoteOfferSearchResult:
        predicates = []
        if search.client_number:
            predicates.append(Eq("client_number", search.client_number))
        if search.request_quote_id:
            predicates.append(Eq("request_quote_id", search.request_quote_id))
        if search.status is not None:
            predicates.append(Eq("status", search.status.value))
        if search.exclude_status is not None:
            predicates.append(Ne("status", search.exclude_status.value))
        if search.created_from or search.created_to:
            predicates.append(Range("created_date", gte=search.created_from, lte=search.created_to))
        if search.search_term:
            predicates.append(Contains(("client_number", "email_user", "comment"), search.search_term))

        items, total = self.store.search(
            predicates,
            page=search.page,
            page_size=search.page_size,
            sort=resolve_sort(search.sort_by, search.sort_order),
        )
        return QuoteOfferSearchResult(
            items=[to_summary(o) for o in items],
            total_count=total,
            page=search.page,
            page_size=search.page_size,
            total_pages=math.ceil(total / search.page_size),
        )

    def _list_by(self, field: str, value: str) -> List[QuoteOfferSummary]:
        items, _ = self.store.search([Eq(field, value)], page=1, page_size=LIST_LIMIT, sort=DEFAULT_SORT)
        return [to_summary(o) for o in items]

    def get_quote_offers_by_client(self, client_number: str) -> List[QuoteOfferSummary]:
        return self._list_by("client_number", client_number)

    def get_quote_offers_by_request(self, request_quote_id: str) -> List[QuoteOfferSummary]:
        return self._list_by("request_quote_id", request_quote_id)

    # ---- Wizard data ----

    def _touch_draft(self, offer: QuoteOffer) -> OptimizedDraftData:
        if offer.optimized_draft_data is None:
            offer.optimized_draft_data = OptimizedDraftData()
        draft = offer.optimized_draft_data
        draft.version += 1
        draft.wizard.last_modified = utcnow()
        return draft

    def get_wizard_data(self, quote_offer_id: str) -> Optional[OptimizedDraftData]:
        return self.require(quote_offer_id).optimized_draft_data

    def update_wizard_data(self, quote_offer_id: str, data: OptimizedDraftData) -> OptimizedDraftData:
        offer = self.require(quote_offer_id)
        ensure_allowed(offer, OperationClass.DRAFT_ONLY, NON_DRAFT_MODIFY)
        previous_version = offer.optimized_draft_data.version if offer.optimized_draft_data else 0
        offer.optimized_draft_data = data.model_copy(deep=True)
        draft = offer.optimized_draft_data
        draft.version = previous_version + 1
        draft.wizard.last_modified = utcnow()
        self.reprice_draft_options(offer)
        self.save(offer)
        return draft

    # ---- Draft options ----

    def list_draft_options(self, quote_offer_id: str) -> List[DraftOption]:
        offer = self.require(quote_offer_id)
        return list(offer.optimized_draft_data.options) if offer.optimized_draft_data else []

    def _priced(self, offer: QuoteOffer, option: DraftOption) -> DraftOption:
        enriched = offer.optimized_draft_data.enriched_data if offer.optimized_draft_data else None
        option.totals = compute_option_totals(enriched, option)
        return option

    def reprice_draft_options(self, offer: QuoteOffer) -> None:
        """Recompute the totals of every draft option from the current enriched data."""
        if offer.optimized_draft_data is None:
            return
        for option in offer.optimized_draft_data.options:
            self._priced(offer, option)

    def add_draft_option(self, quote_offer_id: str, option: DraftOption) -> DraftOption:
        offer = self.require(quote_offer_id)
        ensure_allowed(offer, OperationClass.DRAFT_ONLY, NON_DRAFT_MODIFY)
        now = utcnow()
        new_option = option.model_copy(update={"option_id": option.option_id or str(uuid.uuid4()), "created_at": now, "updated_at": now})
        draft = self._touch_draft(offer)
        draft.options.append(self._priced(offer, new_option))
        self.save(offer)
        return new_option

    def update_draft_option(self, quote_offer_id: str, option_id: str, option: DraftOption) -> Optional[DraftOption]:
        """Replace an option, keeping its id and creation time. None when the option does not exist."""
        offer = self.require(quote_offer_id)
        ensure_allowed(offer, OperationClass.DRAFT_ONLY, NON_DRAFT_MODIFY)
        options = offer.optimized_draft_data.options if offer.optimized_draft_data else []
        for index, existing in enumerate(options):
            if existing.option_id == option_id:
                replacement = option.model_copy(
                    update={"option_id": existing.option_id, "created_at": existing.created_at, "updated_at": utcnow()}
                )
                draft = self._touch_draft(offer)
                draft.options[index] = self._priced(offer, replacement)
                self.save(offer)
                return replacement
        return None

    def delete_draft_option(self, quote_offer_id: str, option_id: str) -> bool:
        offer = self.require(quote_offer_id)
        ensure_allowed(offer, OperationClass.DRAFT_ONLY, NON_DRAFT_MODIFY)
        options = offer.optimized_draft_data.options if offer.optimized_draft_data else []
        remaining = [o for o in options if o.option_id != option_id]
        if len(remaining) == len(options):
            return False
        draft = self._touch_draft(offer)
        draft.options = remaining
        if draft.preferred_option_id == option_id:
            draft.preferred_option_id = None
        self.save(offer)
        return True

    # ---- Attached files ----

    def list_files(self, quote_offer_id: str) -> List[AttachedFile]:
        return list(self.require(quote_offer_id).files)

    def add_file(self, quote_offer_id: str, file: AttachedFile) -> AttachedFile:
        offer = self.require(quote_offer_id)
        stored = file.model_copy(update={"uploaded_at": file.uploaded_at or utcnow()})
        offer.files.append(stored)
        self.save(offer)
        return stored

    def remove_file(self, quote_offer_id: str, file_name: str) -> bool:
        offer = self.require(quote_offer_id)
        remaining = [f for f in offer.files if f.file_name != file_name]
        if len(remaining) == len(offer.files):
            return False
        offer.files = remaining
        self.save(offer)
        return True

    # ---- Stats ----

    def get_stats(self, client_number: Optional[str] = None) -> QuoteOfferStats:
        base = [Eq("client_number", client_number)] if client_number else []

        def count(status: Optional[QuoteOfferStatus] = None) -> int:
            predicates = base + ([Eq("status", status.value)] if status else [])
            return self.store.count(predicates)

        sent = count(QuoteOfferStatus.SENT_TO_CLIENT)
        accepted = count(QuoteOfferStatus.ACCEPTED)
        rate = Decimal("0")
        if sent > 0:
            rate = (Decimal(accepted) / Decimal(sent) * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return QuoteOfferStats(
            total_offers=count(),
            draft_offers=count(QuoteOfferStatus.DRAFT),
            sent_offers=sent,
            accepted_offers=accepted,
            rejected_offers=count(QuoteOfferStatus.REJECTED),
            expired_offers=count(QuoteOfferStatus.EXPIRED),
            conversion_rate=rate,
        )
