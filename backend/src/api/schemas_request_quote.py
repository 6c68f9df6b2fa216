"""Customer request as served by the request-quote source (camelCase JSON)."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RequestLocation(_CamelModel):
    city: Optional[str] = None
    country: Optional[str] = None
    address_line: Optional[str] = None
    postal_code: Optional[str] = None


class RequestQuoteData(_CamelModel):
    request_quote_id: str
    customer_id: Optional[int] = None
    company_name: Optional[str] = None
    contact_full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    pickup_location: Optional[RequestLocation] = None
    delivery_location: Optional[RequestLocation] = None

    cargo_type: Optional[int] = None
    quantity: Optional[int] = None
    goods_description: Optional[str] = None
    number_of_units: Optional[int] = None
    total_weight_kg: Optional[float] = None
    total_dimensions: Optional[str] = None
    is_dangerous_goods: bool = False
    requires_temperature_control: bool = False
    is_fragile_or_high_value: bool = False
    requires_special_handling: bool = False
    special_instructions: Optional[str] = None

    product_id: Optional[int] = None
    product_name: Optional[str] = None
    incoterm: Optional[str] = None
    preferred_transport_mode: Optional[int] = None

    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None

    packing_type: Optional[str] = None
    tags: Optional[str] = None
    additional_comments: Optional[str] = None
    created_at: Optional[datetime] = None
