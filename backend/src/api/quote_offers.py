from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..db import get_quote_offers
from ..services.quote_offer_repository import QuoteOfferRepository
from .schemas_draft import DraftOptionRequest
from .schemas_quote_offer import AttachedFile, DraftOption, OptimizedDraftData, QuoteOfferStats, QuoteOfferSummary


router = APIRouter(prefix="/api/quote-offers", tags=["quote-offers"])


@router.get("/stats", response_model=QuoteOfferStats)
def get_stats(client_number: Optional[str] = Query(None), repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.get_stats(client_number)


@router.get("/by-client/{client_number}", response_model=List[QuoteOfferSummary])
def list_by_client(client_number: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.get_quote_offers_by_client(client_number)


@router.get("/by-request/{request_quote_id}", response_model=List[QuoteOfferSummary])
def list_by_request(request_quote_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.get_quote_offers_by_request(request_quote_id)


# ---- Wizard data ----

@router.get("/{quote_offer_id}/wizard-data", response_model=OptimizedDraftData)
def get_wizard_data(quote_offer_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    data = repo.get_wizard_data(quote_offer_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Wizard data not found")
    return data


@router.put("/{quote_offer_id}/wizard-data", response_model=OptimizedDraftData)
def update_wizard_data(quote_offer_id: str, payload: OptimizedDraftData, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.update_wizard_data(quote_offer_id, payload)


# ---- Draft options ----

@router.get("/{quote_offer_id}/draft-options", response_model=List[DraftOption])
def list_draft_options(quote_offer_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.list_draft_options(quote_offer_id)


@router.put("/{quote_offer_id}/draft-options/{option_id}", response_model=DraftOption)
def update_draft_option(
    quote_offer_id: str,
    option_id: str,
    payload: DraftOptionRequest,
    repo: QuoteOfferRepository = Depends(get_quote_offers),
):
    option = DraftOption(**payload.model_dump(exclude={"option_id"}), option_id=option_id)
    updated = repo.update_draft_option(quote_offer_id, option_id, option)
    if updated is None:
        raise HTTPException(status_code=404, detail="Option not found")
    return updated


@router.delete("/{quote_offer_id}/draft-options/{option_id}")
def delete_draft_option(quote_offer_id: str, option_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    if not repo.delete_draft_option(quote_offer_id, option_id):
        raise HTTPException(status_code=404, detail="Option not found")
    return {"ok": True, "deleted_id": option_id}


# ---- Files ----

@router.get("/{quote_offer_id}/files", response_model=List[AttachedFile])
def list_files(quote_offer_id: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.list_files(quote_offer_id)


@router.post("/{quote_offer_id}/files", response_model=AttachedFile, status_code=201)
def add_file(quote_offer_id: str, payload: AttachedFile, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    return repo.add_file(quote_offer_id, payload)


@router.delete("/{quote_offer_id}/files/{file_name}")
def remove_file(quote_offer_id: str, file_name: str, repo: QuoteOfferRepository = Depends(get_quote_offers)):
    if not repo.remove_file(quote_offer_id, file_name):
        raise HTTPException(status_code=404, detail="File not found")
    return {"ok": True, "deleted_file": file_name}
