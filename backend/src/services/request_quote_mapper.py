"""
Seed a draft from a customer request.

Best-effort defaults only: the port table is a short heuristic, not geodata, and
every value produced here can be overridden in later wizard steps.
"""
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..api.schemas_draft import DraftClient, DraftHeader, DraftLocation, DraftShipment, DraftCommercialTerms
from ..api.schemas_request_quote import RequestLocation, RequestQuoteData
from ..api.schemas_wizard import CargoData, CargoItem, EnrichedWizardData, GeneralRequestInformation, RoutingAndCargo
from ..utils.text import clean_text, normalize_key

DEFAULT_CONTAINER_TYPE = "20DV"
CARGO_TYPES = {0: "20DV", 1: "CONVENTIONAL", 2: "RORO"}

# Normalized country code or name -> ISO code
COUNTRY_CODES = {
    "fr": "FR", "france": "FR",
    "cm": "CM", "cameroon": "CM", "cameroun": "CM",
    "be": "BE", "belgium": "BE", "belgique": "BE",
    "nl": "NL", "netherlands": "NL", "pays bas": "NL", "the netherlands": "NL",
    "de": "DE", "germany": "DE", "allemagne": "DE",
}

FRENCH_CITY_PORTS = {
    "lyon": "Le Havre",
    "paris": "Le Havre",
    "marseille": "Marseille",
}

COUNTRY_PORTS = {
    "CM": "Douala",
    "BE": "Antwerp",
    "NL": "Rotterdam",
    "DE": "Hamburg",
}


def map_cargo_type(code: Union[int, str, None]) -> str:
    try:
        return CARGO_TYPES.get(int(code), DEFAULT_CONTAINER_TYPE)
    except (TypeError, ValueError):
        return DEFAULT_CONTAINER_TYPE


def nearest_port(city: Optional[str], country: Optional[str]) -> str:
    """Closest major port for a city, or the city itself when the table has no match."""
    code = COUNTRY_CODES.get(normalize_key(country) or "")
    if code == "FR":
        port = FRENCH_CITY_PORTS.get(normalize_key(city) or "")
        if port:
            return port
    elif code in COUNTRY_PORTS:
        return COUNTRY_PORTS[code]
    return city or ""


def parse_volume(dimensions: Optional[str]) -> Decimal:
    """
    Volume in m3 from text like "2.5m x 1.5m x 1.2m".

    Anything that is not three numbers separated by "x" yields 0.
    """
    if not dimensions:
        return Decimal("0")
    parts = dimensions.lower().split("x")
    if len(parts) != 3:
        return Decimal("0")
    volume = Decimal("1")
    for part in parts:
        txt = part.strip().replace("m", "").replace(",", ".").strip()
        try:
            value = Decimal(txt)
        except InvalidOperation:
            return Decimal("0")
        if not value.is_finite():
            return Decimal("0")
        volume *= value
    return volume


def _location(loc: Optional[RequestLocation]) -> DraftLocation:
    if loc is None:
        return DraftLocation()
    return DraftLocation(city=loc.city, country=loc.country)


def map_request_to_customer(req: RequestQuoteData) -> DraftClient:
    return DraftClient(
        company=req.company_name,
        contact=req.contact_full_name,
        email=req.email,
        phone=req.phone,
    )


def map_request_to_header(req: RequestQuoteData) -> DraftHeader:
    return DraftHeader(
        client=map_request_to_customer(req),
        shipment=DraftShipment(
            from_request=True,
            cargo_type=map_cargo_type(req.cargo_type),
            goods_description=clean_text(req.goods_description),
            origin=_location(req.pickup_location),
            destination=_location(req.delivery_location),
            requested_departure=req.pickup_date,
        ),
        commercial_terms=DraftCommercialTerms(incoterm=req.incoterm),
    )


def map_request_to_wizard_data(req: RequestQuoteData) -> EnrichedWizardData:
    pickup = req.pickup_location or RequestLocation()
    delivery = req.delivery_location or RequestLocation()

    notes = [clean_text(req.additional_comments), clean_text(req.special_instructions)]
    item = CargoItem(
        container_type=map_cargo_type(req.cargo_type),
        quantity=req.quantity or 1,
        gross_weight_kg=Decimal(str(req.total_weight_kg or 0)),
        volume_m3=parse_volume(req.total_dimensions),
    )
    return EnrichedWizardData(
        general_request_information=GeneralRequestInformation(
            channel="request_quote",
            priority="normal",
            notes="\n".join(n for n in notes if n) or None,
        ),
        routing_and_cargo=RoutingAndCargo(
            port_of_loading=nearest_port(pickup.city, pickup.country),
            port_of_destination=nearest_port(delivery.city, delivery.country),
            cargo=CargoData(
                items=[item],
                hazmat=req.is_dangerous_goods,
                goods_description=clean_text(req.goods_description),
            ),
        ),
    )
