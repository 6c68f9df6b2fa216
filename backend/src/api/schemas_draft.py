from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from .schemas_quote_offer import DraftOption, WizardMetadata, WizardSteps
from .schemas_wizard import EnrichedWizardData, PricingPreview, ValidationReport


# ---- Header ----

class DraftClient(BaseModel):
    company: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class DraftLocation(BaseModel):
    city: Optional[str] = None
    country: Optional[str] = None


class DraftShipment(BaseModel):
    from_request: bool = False
    cargo_type: Optional[str] = None
    goods_description: Optional[str] = None
    origin: DraftLocation = Field(default_factory=DraftLocation)
    destination: DraftLocation = Field(default_factory=DraftLocation)
    requested_departure: Optional[datetime] = None


class DraftCommercialTerms(BaseModel):
    currency: str = "EUR"
    incoterm: Optional[str] = None
    validity_days: int = 15


class DraftHeader(BaseModel):
    client: DraftClient = Field(default_factory=DraftClient)
    shipment: DraftShipment = Field(default_factory=DraftShipment)
    commercial_terms: DraftCommercialTerms = Field(default_factory=DraftCommercialTerms)


# ---- Requests ----

class CreateDraftQuoteRequest(BaseModel):
    request_id: Optional[str] = None
    header: Optional[DraftHeader] = None
    wizard_data: Optional[EnrichedWizardData] = None


class UpdateDraftQuoteRequest(BaseModel):
    header: Optional[DraftHeader] = None
    wizard_data: Optional[EnrichedWizardData] = None
    current_step: Optional[int] = Field(default=None, ge=1, le=7)
    wizard_status: Optional[str] = None
    preferred_option_id: Optional[str] = None
    comment: Optional[str] = None


class DraftOptionRequest(BaseModel):
    # Present: replace that option. Missing: add a new one.
    option_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    margin_type: str = "percentage"
    margin_value: Decimal = Decimal("0")
    seafreight_refs: List[str] = Field(default_factory=list)
    haulage_refs: List[str] = Field(default_factory=list)
    service_refs: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None


class DraftSearchRequest(BaseModel):
    client_number: Optional[str] = None
    request_quote_id: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    search_term: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    sort_by: str = "created_date"
    sort_order: str = "desc"


# ---- Responses ----

class DraftQuoteResponse(BaseModel):
    draft_quote_id: str
    request_id: Optional[str] = None
    quote_offer_number: int
    status: str
    version: int = 1
    header: DraftHeader = Field(default_factory=DraftHeader)
    wizard: WizardMetadata = Field(default_factory=WizardMetadata)
    steps: WizardSteps = Field(default_factory=WizardSteps)
    wizard_data: Optional[EnrichedWizardData] = None
    options: List[DraftOption] = Field(default_factory=list)
    preferred_option_id: Optional[str] = None
    pricing_preview: PricingPreview = Field(default_factory=PricingPreview)
    validation: ValidationReport = Field(default_factory=ValidationReport)
    total_options: int = 0
    currency: str = "EUR"
    created_date: datetime
    updated_at: datetime


class DraftValidationResponse(BaseModel):
    draft_quote_id: str
    validation: ValidationReport
