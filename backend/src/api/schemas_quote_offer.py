"""Quote-offer aggregate and the repository-level request/result models."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .schemas_wizard import EnrichedWizardData


class QuoteOfferStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT_TO_CLIENT = "SENT_TO_CLIENT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


# ---- Totals ----

class OptionTotals(BaseModel):
    haulage_total: Decimal = Decimal("0.00")
    seafreight_total: Decimal = Decimal("0.00")
    miscellaneous_total: Decimal = Decimal("0.00")
    grand_total: Decimal = Decimal("0.00")
    currency: str = "EUR"


class DraftOptionTotals(OptionTotals):
    pass


# ---- Wizard working state ----

class WizardMetadata(BaseModel):
    current_step: int = Field(default=1, ge=1, le=7)
    status: str = "not_started"
    last_modified: Optional[datetime] = None


class WizardSteps(BaseModel):
    # step1: route and customer, step2: selected services, step3: containers,
    # step4: haulage, step5: seafreight, step6: miscellaneous, step7: finalization
    step1: Dict[str, Any] = Field(default_factory=dict)
    step2: Dict[str, Any] = Field(default_factory=dict)
    step3: Dict[str, Any] = Field(default_factory=dict)
    step4: Dict[str, Any] = Field(default_factory=dict)
    step5: Dict[str, Any] = Field(default_factory=dict)
    step6: Dict[str, Any] = Field(default_factory=dict)
    step7: Dict[str, Any] = Field(default_factory=dict)


class DraftOption(BaseModel):
    option_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    margin_type: str = "percentage"        # "percentage" | "fixed"
    margin_value: Decimal = Decimal("0")
    seafreight_refs: List[str] = Field(default_factory=list)
    haulage_refs: List[str] = Field(default_factory=list)
    service_refs: List[str] = Field(default_factory=list)
    totals: DraftOptionTotals = Field(default_factory=DraftOptionTotals)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class OptimizedDraftData(BaseModel):
    wizard: WizardMetadata = Field(default_factory=WizardMetadata)
    steps: WizardSteps = Field(default_factory=WizardSteps)
    options: List[DraftOption] = Field(default_factory=list)
    preferred_option_id: Optional[str] = None
    enriched_data: Optional[EnrichedWizardData] = None
    version: int = 1


# ---- Finalized options / files ----

class QuoteOption(BaseModel):
    option_id: str
    description: Optional[str] = None
    totals: OptionTotals = Field(default_factory=OptionTotals)

    model_config = {"frozen": True}


class AttachedFile(BaseModel):
    file_name: str
    file_url: str
    file_size: int = 0
    content_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    uploaded_by: Optional[str] = None


# ---- Aggregate ----

class QuoteOffer(BaseModel):
    id: str
    request_quote_id: Optional[str] = None
    client_number: Optional[str] = None
    email_user: Optional[str] = None
    comment: Optional[str] = None
    status: QuoteOfferStatus = QuoteOfferStatus.DRAFT
    quote_offer_number: int
    selected_option: int = 0
    created_date: datetime
    updated_at: datetime
    expiration_date: Optional[datetime] = None
    client_approval: Optional[str] = None
    optimized_draft_data: Optional[OptimizedDraftData] = None
    options: List[QuoteOption] = Field(default_factory=list)
    files: List[AttachedFile] = Field(default_factory=list)


# ---- Repository requests ----

class CreateQuoteOffer(BaseModel):
    request_quote_id: Optional[str] = None
    client_number: Optional[str] = None
    email_user: Optional[str] = None
    comment: Optional[str] = None
    optimized_draft_data: Optional[OptimizedDraftData] = None


class QuoteOfferPatch(BaseModel):
    """Partial update: a ``None`` field leaves the stored value unchanged.

    Status is not patchable; it only moves through the lifecycle operations.
    """

    request_quote_id: Optional[str] = None
    client_number: Optional[str] = None
    email_user: Optional[str] = None
    comment: Optional[str] = None
    selected_option: Optional[int] = None
    expiration_date: Optional[datetime] = None
    client_approval: Optional[str] = None
    optimized_draft_data: Optional[OptimizedDraftData] = None
    options: Optional[List[QuoteOption]] = None
    files: Optional[List[AttachedFile]] = None


class QuoteOfferSearch(BaseModel):
    client_number: Optional[str] = None
    request_quote_id: Optional[str] = None
    status: Optional[QuoteOfferStatus] = None
    exclude_status: Optional[QuoteOfferStatus] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    search_term: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    sort_by: str = "created_date"
    sort_order: str = "desc"


class QuoteOfferSummary(BaseModel):
    id: str
    request_quote_id: Optional[str] = None
    client_number: Optional[str] = None
    email_user: Optional[str] = None
    status: QuoteOfferStatus
    quote_offer_number: int
    created_date: datetime
    updated_at: datetime
    expiration_date: Optional[datetime] = None
    grand_total: Optional[Decimal] = None
    currency: str = "EUR"
    options_count: int = 0


class QuoteOfferSearchResult(BaseModel):
    items: List[QuoteOfferSummary] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0


class QuoteOfferStats(BaseModel):
    total_offers: int = 0
    draft_offers: int = 0
    sent_offers: int = 0
    accepted_offers: int = 0
    rejected_offers: int = 0
    expired_offers: int = 0
    conversion_rate: Decimal = Decimal("0")
