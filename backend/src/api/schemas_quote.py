from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .schemas_quote_offer import OptionTotals, QuoteOfferStatus


class FinalizeOptionRequest(BaseModel):

    option_id: str

    description: Optional[str] = None

    # Used only when option_id does not name a draft option
    totals: Optional[OptionTotals] = None


class FinalizeDraftRequest(BaseModel):

    options: List[FinalizeOptionRequest] = Field(default_factory=list)

    preferred_option_id: str

    quote_comments: Optional[str] = None

    expiration_date: Optional[datetime] = None


class ChangeQuoteStatusRequest(BaseModel):

    new_status: str

    reason: Optional[str] = None


class ClientApprovalRequest(BaseModel):

    approval: str  # "accepted" | "rejected"

    comments: Optional[str] = None

    selected_option_id: Optional[int] = None


class QuoteSearchRequest(BaseModel):

    client_number: Optional[str] = None

    request_quote_id: Optional[str] = None

    status: Optional[QuoteOfferStatus] = None

    created_from: Optional[datetime] = None

    created_to: Optional[datetime] = None

    search_term: Optional[str] = None

    page: int = Field(default=1, ge=1)

    page_size: int = Field(default=20, ge=1, le=100)

    sort_by: str = "created_date"

    sort_order: str = "desc"
