import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..db import get_quote_offers
from ..services.lifecycle import (
    NON_DRAFT_DELETE,
    NON_DRAFT_UPDATE,
    NON_DRAFT_VALIDATE,
    NOT_A_DRAFT,
    OperationClass,
    ensure_allowed,
)
from ..services.pricing import build_pricing_preview
from ..services.quote_offer_repository import QuoteOfferRepository
from ..services.request_quote_client import RequestQuoteClient, get_request_quote_client
from ..services.request_quote_mapper import map_request_to_header, map_request_to_wizard_data
from ..services.validation import validate_quote_offer
from .schemas_draft import (
    CreateDraftQuoteRequest,
    DraftHeader,
    DraftOptionRequest,
    DraftQuoteResponse,
    DraftSearchRequest,
    DraftValidationResponse,
    UpdateDraftQuoteRequest,
)
from .schemas_quote_offer import (
    CreateQuoteOffer,
    DraftOption,
    OptimizedDraftData,
    QuoteOffer,
    QuoteOfferSearch,
    QuoteOfferSearchResult,
    QuoteOfferStatus,
    WizardMetadata,
    WizardSteps,
)
from .schemas_wizard import EnrichedWizardData, PricingPreview

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/draft-quotes", tags=["draft-quotes"])


def _to_response(offer: QuoteOffer) -> DraftQuoteResponse:
    draft = offer.optimized_draft_data or OptimizedDraftData()
    header = DraftHeader.model_validate(draft.steps.step1.get("header") or {})
    preferred = next((o for o in draft.options if o.option_id == draft.preferred_option_id), None)
    return DraftQuoteResponse(
        draft_quote_id=offer.id,
        request_id=offer.request_quote_id,
        quote_offer_number=offer.quote_offer_number,
        status="in_progress" if offer.status == QuoteOfferStatus.DRAFT else offer.status.value,
        version=draft.version,
        header=header,
        wizard=draft.wizard,
        steps=draft.steps,
        wizard_data=draft.enriched_data,
        options=draft.options,
        preferred_option_id=draft.preferred_option_id,
        pricing_preview=build_pricing_preview(draft.enriched_data, preferred),
        validation=validate_quote_offer(offer),
        total_options=len(draft.options),
        currency=header.commercial_terms.currency,
        created_date=offer.created_date,
        updated_at=offer.updated_at,
    )


def _load_draft(repo: QuoteOfferRepository, draft_id: str, message: str) -> QuoteOffer:
    offer = repo.get_quote_offer(draft_id)
    if not offer:
        logger.warning(f"Draft quote {draft_id} not found")
        raise HTTPException(status_code=404, detail="Draft quote not found")
    ensure_allowed(offer, OperationClass.DRAFT_ONLY, message)
    return offer


def _create_draft(
    repo: QuoteOfferRepository,
    request_id: Optional[str],
    header: Optional[DraftHeader],
    wizard_data: Optional[EnrichedWizardData],
) -> QuoteOffer:
    header = header or DraftHeader()
    draft = OptimizedDraftData(
        wizard=WizardMetadata(current_step=1, status="in_progress", last_modified=datetime.now(timezone.utc)),
        steps=WizardSteps(step1={"header": header.model_dump(mode="json")}),
        enriched_data=wizard_data,
    )
    notes = wizard_data.general_request_information.notes if wizard_data else None
    new_id = repo.create_quote_offer(
        CreateQuoteOffer(
            request_quote_id=request_id,
            client_number=header.client.company,
            email_user=header.client.email,
            comment=notes,
            optimized_draft_data=draft,
        )
    )
    logger.info(f"Draft quote {new_id} created for request {request_id}")
    return repo.require(new_id)


@router.post("", response_model=DraftQuoteResponse, status_code=201)
def create_draft_quote(payload: CreateDraftQuoteRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _create_draft(repo, payload.request_id, payload.header, payload.wizard_data)
    return _to_response(offer)


@router.post("/from-request/{request_id}", response_model=DraftQuoteResponse, status_code=201)
def create_draft_from_request(
    request_id: str,
    repo: QuoteOfferRepository = Depends(get_quote_offers),
    source: RequestQuoteClient = Depends(get_request_quote_client),
):
    data = source.get_request_quote(request_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Request quote not found")
    offer = _create_draft(repo, data.request_quote_id or request_id, map_request_to_header(data), map_request_to_wizard_data(data))
    return _to_response(offer)


@router.post("/search", response_model=QuoteOfferSearchResult)
def search_draft_quotes(payload: DraftSearchRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    search = QuoteOfferSearch(**payload.model_dump(), status=QuoteOfferStatus.DRAFT)
    return repo.search_quote_offers(search)


@router.get("/{draft_id}", response_model=DraftQuoteResponse)
def get_draft_quote(draft_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return _to_response(_load_draft(repo, draft_id, NOT_A_DRAFT))


@router.put("/{draft_id}", response_model=DraftQuoteResponse)
def update_draft_quote(draft_id: str, payload: UpdateDraftQuoteRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load_draft(repo, draft_id, NON_DRAFT_UPDATE)
    draft = offer.optimized_draft_data or OptimizedDraftData()

    if payload.preferred_option_id is not None and payload.preferred_option_id not in [o.option_id for o in draft.options]:
        raise HTTPException(status_code=400, detail="Preferred option must exist in options list")

    if payload.header is not None:
        draft.steps.step1["header"] = payload.header.model_dump(mode="json")
        offer.client_number = payload.header.client.company or offer.client_number
        offer.email_user = payload.header.client.email or offer.email_user
    if payload.wizard_data is not None:
        draft.enriched_data = payload.wizard_data
    if payload.current_step is not None:
        draft.wizard.current_step = payload.current_step
    if payload.wizard_status is not None:
        draft.wizard.status = payload.wizard_status
    if payload.preferred_option_id is not None:
        draft.preferred_option_id = payload.preferred_option_id
    if payload.comment is not None:
        offer.comment = payload.comment

    draft.version += 1
    draft.wizard.last_modified = datetime.now(timezone.utc)
    offer.optimized_draft_data = draft
    repo.reprice_draft_options(offer)
    repo.save(offer)
    return _to_response(repo.require(draft_id))


@router.post("/{draft_id}/options", response_model=DraftQuoteResponse)
def add_or_update_option(draft_id: str, payload: DraftOptionRequest, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    option = DraftOption(**payload.model_dump(exclude={"option_id"}), option_id=payload.option_id or "")
    updated = None
    if payload.option_id:
        updated = repo.update_draft_option(draft_id, payload.option_id, option)
    if updated is None:
        repo.add_draft_option(draft_id, option)
    return _to_response(repo.require(draft_id))


@router.post("/{draft_id}/validate", response_model=DraftValidationResponse)
def validate_draft_quote(draft_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    offer = _load_draft(repo, draft_id, NON_DRAFT_VALIDATE)
    return DraftValidationResponse(draft_quote_id=offer.id, validation=validate_quote_offer(offer))


@router.get("/{draft_id}/pricing-preview", response_model=PricingPreview)
def pricing_preview(
    draft_id: str,
    option_id: Optional[str] = Query(None),
    repo: QuoteOfferRepository = Depends(get_quote_offers),
):
    offer = _load_draft(repo, draft_id, NOT_A_DRAFT)
    draft = offer.optimized_draft_data or OptimizedDraftData()
    option = None
    if option_id:
        option = next((o for o in draft.options if o.option_id == option_id), None)
        if option is None:
            raise HTTPException(status_code=404, detail="Option not found")
    return build_pricing_preview(draft.enriched_data, option)


@router.delete("/{draft_id}")
def delete_draft_quote(draft_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    _load_draft(repo, draft_id, NON_DRAFT_DELETE)
    repo.delete_quote_offer(draft_id)
    return {"ok": True, "deleted_id": draft_id}
