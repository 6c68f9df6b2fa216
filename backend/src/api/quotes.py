import logging

from fastapi import APIRouter, Depends, HTTPException

from ..db import get_quote_offers
from ..services import lifecycle
from ..services.lifecycle import DRAFT_ACCESS, DRAFT_DELETE, OperationClass, ensure_allowed
from ..services.quote_offer_repository import QuoteOfferRepository
from .schemas_quote import ChangeQuoteStatusRequest, ClientApprovalRequest, FinalizeDraftRequest, QuoteSearchRequest
from .schemas_quote_offer import QuoteOffer, QuoteOfferSearch, QuoteOfferSearchResult, QuoteOfferStatus

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/quotes", tags=["quotes"])


def _load(repo: QuoteOfferRepository, quote_id: str, not_found: str = "Quote not found") -> QuoteOffer:
    offer = repo.get_quote_offer(quote_id)
    if not offer:
        logger.warning(f"Quote {quote_id} not found")
        raise HTTPException(status_code=404, detail=not_found)
    return offer


@router.post("/search", response_model=QuoteOfferSearchResult)
def search_quotes(payload: QuoteSearchRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    search = QuoteOfferSearch(**payload.model_dump(), exclude_status=QuoteOfferStatus.DRAFT)
    return repo.search_quote_offers(search)


@router.get("/{quote_id}", response_model=QuoteOffer)
def get_quote(quote_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load(repo, quote_id)
    ensure_allowed(offer, OperationClass.QUOTE_ONLY, DRAFT_ACCESS)
    return offer


@router.post("/finalize/{draft_id}", response_model=QuoteOffer, status_code=201)
def finalize_draft(draft_id: str, payload: FinalizeDraftRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load(repo, draft_id, not_found="Draft not found")
    lifecycle.finalize_draft(offer, payload)
    repo.save(offer)
    return repo.require(draft_id)


@router.put("/{quote_id}/status", response_model=QuoteOffer)
def change_quote_status(quote_id: str, payload: ChangeQuoteStatusRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load(repo, quote_id)
    lifecycle.change_status(offer, payload)
    repo.save(offer)
    return repo.require(quote_id)


@router.post("/{quote_id}/client-approval", response_model=QuoteOffer)
def process_client_approval(quote_id: str, payload: ClientApprovalRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load(repo, quote_id)
    lifecycle.apply_client_approval(offer, payload)
    repo.save(offer)
    return repo.require(quote_id)


@router.delete("/{quote_id}")
def delete_quote(quote_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load(repo, quote_id)
    ensure_allowed(offer, OperationClass.QUOTE_ONLY, DRAFT_DELETE)
    repo.delete_quote_offer(quote_id)
    return {"ok": True, "deleted_id": quote_id}
