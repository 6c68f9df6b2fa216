"""Enriched wizard data: the seafreight, haulage and service line items a draft is priced from."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


# ---- General / routing ----

class GeneralRequestInformation(BaseModel):
    channel: Optional[str] = None
    priority: Optional[str] = "normal"
    notes: Optional[str] = None


class CargoItem(BaseModel):
    container_type: str = "20DV"
    quantity: int = 1
    gross_weight_kg: Decimal = Decimal("0")
    volume_m3: Decimal = Decimal("0")


class CargoData(BaseModel):
    items: List[CargoItem] = Field(default_factory=list)
    hazmat: bool = False
    goods_description: Optional[str] = None


class RoutingAndCargo(BaseModel):
    port_of_loading: Optional[str] = None
    port_of_destination: Optional[str] = None
    cargo: CargoData = Field(default_factory=CargoData)


# ---- Seafreight ----

class ContainerRate(BaseModel):
    container_type: str
    base_price: Decimal


class SurchargeData(BaseModel):
    code: str
    label: Optional[str] = None
    calc: str = "flat"                 # "flat" | "percent"
    base: Optional[str] = None         # e.g. "seafreight" for percent surcharges
    unit: Optional[str] = None         # e.g. "per_container"
    value: Decimal = Decimal("0")
    currency: str = "EUR"
    taxable: bool = False
    applies_to: List[str] = Field(default_factory=list)


class FreeTimeData(BaseModel):
    origin_days: Optional[int] = None
    destination_days: Optional[int] = None


class SeafreightData(BaseModel):
    id: str
    carrier: Optional[str] = None
    service: Optional[str] = None
    etd: Optional[datetime] = None
    eta: Optional[datetime] = None
    currency: str = "EUR"
    valid_until: Optional[datetime] = None
    rates: List[ContainerRate] = Field(default_factory=list)
    surcharges: List[SurchargeData] = Field(default_factory=list)
    free_time: Optional[FreeTimeData] = None


# ---- Haulage ----

class HaulagePricing(BaseModel):
    container_type: str
    unit: Optional[str] = "per_container"
    price: Decimal = Decimal("0")
    included_waiting_hours: Optional[int] = None
    extra_hour_price: Optional[Decimal] = None


class HaulageData(BaseModel):
    id: str
    provider: Optional[str] = None
    scope: Optional[str] = None        # "pre-carriage" | "on-carriage"
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    currency: str = "EUR"
    pricing: List[HaulagePricing] = Field(default_factory=list)
    notes: Optional[str] = None


# ---- Services ----

class ServiceData(BaseModel):
    id: str
    name: str
    provider: Optional[str] = None
    unit: Optional[str] = "per_shipment"   # "per_shipment" | "per_container"
    price: Decimal = Decimal("0")
    currency: str = "EUR"
    taxable: bool = False
    tax_rate: Optional[Decimal] = None


class EnrichedWizardData(BaseModel):
    general_request_information: GeneralRequestInformation = Field(default_factory=GeneralRequestInformation)
    routing_and_cargo: RoutingAndCargo = Field(default_factory=RoutingAndCargo)
    seafreights: List[SeafreightData] = Field(default_factory=list)
    haulages: List[HaulageData] = Field(default_factory=list)
    services: List[ServiceData] = Field(default_factory=list)


# ---- Pricing preview ----

class PricingLine(BaseModel):
    kind: str                          # "seafreight" | "haulage" | "service"
    ref: Optional[str] = None
    description: str
    unit_price: Decimal
    qty: int = 1
    taxable: bool = False
    tax_rate: Optional[Decimal] = None


class PricingSubtotals(BaseModel):
    taxable_base: Decimal = Decimal("0.00")
    nontaxable_base: Decimal = Decimal("0.00")


class PricingPreview(BaseModel):
    currency: str = "EUR"
    lines: List[PricingLine] = Field(default_factory=list)
    subtotals: PricingSubtotals = Field(default_factory=PricingSubtotals)
    tax_total: Decimal = Decimal("0.00")
    grand_total: Decimal = Decimal("0.00")
    unsupported_surcharges: List[str] = Field(default_factory=list)


# ---- Validation report ----

class ValidationCheck(BaseModel):
    rule: str
    ok: bool
    message: Optional[str] = None


class ValidationWarning(BaseModel):
    code: str
    message: str


class ValidationReport(BaseModel):
    checks: List[ValidationCheck] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
