"""
Registry of listing sites with a dedicated structured-extraction schema.

Each known portal gets one SiteProfile: the JSON schema sent to the extraction
agent, the prompt, and a pure mapping function from that schema's (prefixed)
field names to a PropertyRecord. Supporting a new portal means registering one
more profile; the orchestrator only ever calls ``lookup``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import UnsupportedDomain
from extraction.core.property_record import PropertyRecord
from utils.html_utils import clean_text, get_hostname, host_matches

logger = logging.getLogger(__name__)

DEFAULT_PRICE = "Contact for Price"
DEFAULT_LOCATION = "Panama"

Mapper = Callable[[Any], PropertyRecord]

_BEDROOM_RE = re.compile(r'\d+\s*(hab|rec[aá]mara|bedroom|cuarto|dormitorio|beds?\b)', re.IGNORECASE)
_BATHROOM_RE = re.compile(r'\d+(\.\d+)?\s*(ba[ñn]o|bathroom|baths?\b)', re.IGNORECASE)
_AREA_RE = re.compile(r'\d+[,.\d]*\s*(m[2²]|sq\.?\s*ft|metro)', re.IGNORECASE)


@dataclass(frozen=True)
class SiteProfile:
    """Extraction schema and field mapping for one listing site."""
    name: str
    domain: str
    schema: Dict[str, Any]
    prompt: str
    mapper: Mapper

    def map(self, payload: Any) -> PropertyRecord:
        return self.mapper(payload)


@dataclass(frozen=True)
class FieldMap:
    """Schema-specific field names for each canonical PropertyRecord field."""
    title: str
    price: str
    location: str
    description: str
    features: List[str]
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    area: Optional[str] = None
    details: Optional[str] = None
    images: Optional[str] = None


# ---------------------------------------------------------------------------
# Payload coercion
# ---------------------------------------------------------------------------

def coerce_text(value: Any) -> str:
    """Coerce an untrusted scalar into a string; containers and None become ""."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for key in ("value", "name", "text", "label"):
            if key in value:
                return coerce_text(value[key])
    return ""


def coerce_list(value: Any) -> List[str]:
    """Coerce an untrusted list of strings or ``{value: ...}`` objects into strings."""
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    items = []
    for item in value:
        text = clean_text(coerce_text(item))
        if text:
            items.append(text)
    return items


def details_to_measurements(details: List[str]) -> Dict[str, str]:
    """Pick bedroom, bathroom and area strings out of free-form detail bullets."""
    found: Dict[str, str] = {}
    for detail in details:
        if "bedrooms" not in found and _BEDROOM_RE.search(detail):
            found["bedrooms"] = detail
        if "bathrooms" not in found and _BATHROOM_RE.search(detail):
            found["bathrooms"] = detail
        if "area" not in found and _AREA_RE.search(detail):
            found["area"] = detail
    return found


def map_payload(payload: Any, fields: FieldMap, source: str) -> PropertyRecord:
    """
    Map an extraction payload onto a PropertyRecord.

    Total over any input: non-dict payloads are treated as empty. Missing
    optional fields get defaults ("Contact for Price", "Panama", []); price and
    description are passed through as given.
    """
    data = payload if isinstance(payload, dict) else {}

    features: List[str] = []
    for name in fields.features:
        features.extend(coerce_list(data.get(name)))

    details = coerce_list(data.get(fields.details)) if fields.details else []
    measurements = details_to_measurements(details + features)

    def optional(field_name: Optional[str], key: str) -> Optional[str]:
        value = clean_text(coerce_text(data.get(field_name))) if field_name else ""
        return value or measurements.get(key)

    return PropertyRecord(
        title=clean_text(coerce_text(data.get(fields.title))),
        price=coerce_text(data.get(fields.price)) or DEFAULT_PRICE,
        location=clean_text(coerce_text(data.get(fields.location))) or DEFAULT_LOCATION,
        bedrooms=optional(fields.bedrooms, "bedrooms"),
        bathrooms=optional(fields.bathrooms, "bathrooms"),
        area=optional(fields.area, "area"),
        description=coerce_text(data.get(fields.description)),
        features=features,
        images=coerce_list(data.get(fields.images)) if fields.images else [],
        source=source,
    )


def has_core_fields(payload: Any, profile: SiteProfile) -> bool:
    """True when the raw payload carries a title or a price for ``profile``."""
    if not isinstance(payload, dict):
        return False
    fields = PROFILE_FIELDS.get(profile.name)
    if fields is None:
        return False
    return bool(coerce_text(payload.get(fields.title)) or coerce_text(payload.get(fields.price)))


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

def _string(description: str) -> Dict[str, str]:
    return {"type": "string", "description": description}


def _value_list(description: str) -> Dict[str, Any]:
    return {
        "type": "array",
        "description": description,
        "items": {"type": "object", "properties": {"value": {"type": "string"}}},
    }


def _string_list(description: str) -> Dict[str, Any]:
    return {"type": "array", "description": description, "items": {"type": "string"}}


ENCUENTRA24_SCHEMA = {
    "type": "object",
    "properties": {
        "encuentra24_title": _string("Título del listado"),
        "encuentra24_price": _string("Precio de la propiedad"),
        "encuentra24_location": _string("Ubicación de la propiedad"),
        "encuentra24_details": _string_list("Detalles de la propiedad (habitaciones, baños, área)"),
        "encuentra24_amenities": _value_list("Amenidades de la propiedad"),
        "encuentra24_description": _string("Descripción completa de la propiedad"),
    },
    "required": ["encuentra24_description", "encuentra24_price"],
}

JAMESEDITION_SCHEMA = {
    "type": "object",
    "properties": {
        "je_title": _string("Listing title"),
        "je_price": _string("Asking price including currency"),
        "je_location": _string("City, region and country of the property"),
        "je_bedrooms": _string("Number of bedrooms"),
        "je_bathrooms": _string("Number of bathrooms"),
        "je_living_area": _string("Living area with unit"),
        "je_description": _string("Full property description"),
        "je_features": _value_list("Property features"),
        "je_amenities": _value_list("Property amenities"),
    },
    "required": ["je_description", "je_price"],
}

COMPREOALQUILE_SCHEMA = {
    "type": "object",
    "properties": {
        "coa_titulo": _string("Título del listado"),
        "coa_precio": _string("Precio de la propiedad"),
        "coa_ubicacion": _string("Ubicación de la propiedad"),
        "coa_detalles": _string_list("Detalles de la propiedad"),
        "coa_amenidades": _value_list("Amenidades de la propiedad"),
        "coa_descripcion": _string("Descripción de la propiedad"),
    },
    "required": ["coa_descripcion", "coa_precio"],
}

MLSACOBIR_SCHEMA = {
    "type": "object",
    "properties": {
        "mls_title": _string("Título del listado"),
        "mls_list_price": _string("Precio de lista"),
        "mls_address": _string("Dirección o sector de la propiedad"),
        "mls_bedrooms": _string("Recámaras"),
        "mls_bathrooms": _string("Baños"),
        "mls_area": _string("Área construida con unidad"),
        "mls_remarks": _string("Descripción de la propiedad"),
        "mls_features": _value_list("Características de la propiedad"),
    },
    "required": ["mls_remarks", "mls_list_price"],
}

GENERIC_PROPERTY_SCHEMA = {
    "type": "object",
    "properties": {
        "title": _string("The full title of the property listing"),
        "price": _string("The price of the property (e.g., $500,000, €450.000)"),
        "location": _string("The full address or location of the property"),
        "bedrooms": _string("Number of bedrooms"),
        "bathrooms": _string("Number of bathrooms"),
        "area": _string("Total area in m2 or sq ft"),
        "description": _string("Full description of the property"),
        "features": _string_list("List of amenities and features"),
        "images": _string_list("List of image URLs"),
    },
    "required": ["description", "price"],
}

PROFILE_FIELDS = {
    "Encuentra24": FieldMap(
        title="encuentra24_title", price="encuentra24_price",
        location="encuentra24_location", description="encuentra24_description",
        features=["encuentra24_amenities"], details="encuentra24_details",
    ),
    "JamesEdition": FieldMap(
        title="je_title", price="je_price", location="je_location",
        description="je_description", features=["je_features", "je_amenities"],
        bedrooms="je_bedrooms", bathrooms="je_bathrooms", area="je_living_area",
    ),
    "CompreOAlquile": FieldMap(
        title="coa_titulo", price="coa_precio", location="coa_ubicacion",
        description="coa_descripcion", features=["coa_amenidades"],
        details="coa_detalles",
    ),
    "MLS ACOBIR": FieldMap(
        title="mls_title", price="mls_list_price", location="mls_address",
        description="mls_remarks", features=["mls_features"],
        bedrooms="mls_bedrooms", bathrooms="mls_bathrooms", area="mls_area",
    ),
    "Agent": FieldMap(
        title="title", price="price", location="location",
        description="description", features=["features"],
        bedrooms="bedrooms", bathrooms="bathrooms", area="area",
        images="images",
    ),
}


def map_encuentra24(payload: Any) -> PropertyRecord:
    return map_payload(payload, PROFILE_FIELDS["Encuentra24"], "Encuentra24")


def map_jamesedition(payload: Any) -> PropertyRecord:
    return map_payload(payload, PROFILE_FIELDS["JamesEdition"], "JamesEdition")


def map_compreoalquile(payload: Any) -> PropertyRecord:
    return map_payload(payload, PROFILE_FIELDS["CompreOAlquile"], "CompreOAlquile")


def map_mlsacobir(payload: Any) -> PropertyRecord:
    return map_payload(payload, PROFILE_FIELDS["MLS ACOBIR"], "MLS ACOBIR")


def map_generic(payload: Any) -> PropertyRecord:
    return map_payload(payload, PROFILE_FIELDS["Agent"], "Agent")


DEFAULT_PROMPT = "Extract detailed property information from this real estate listing."

GENERIC_PROFILE = SiteProfile(
    name="Agent",
    domain="*",
    schema=GENERIC_PROPERTY_SCHEMA,
    prompt=DEFAULT_PROMPT,
    mapper=map_generic,
)


class SiteRegistry:
    """Hostname pattern -> SiteProfile lookup table."""

    def __init__(self, profiles: Optional[List[SiteProfile]] = None):
        self._profiles: Dict[str, SiteProfile] = {}
        for profile in profiles if profiles is not None else DEFAULT_PROFILES:
            self.register(profile)

    def register(self, profile: SiteProfile) -> None:
        self._profiles[profile.domain] = profile
        logger.debug(f"Registered extraction profile {profile.name} for {profile.domain}")

    @property
    def domains(self) -> List[str]:
        return list(self._profiles)

    def lookup(self, url: str) -> SiteProfile:
        """
        Find the profile for ``url``'s host.

        Raises:
            UnsupportedDomain: when the host is not a known listing site
        """
        hostname = get_hostname(url)
        for domain, profile in self._profiles.items():
            if host_matches(hostname, domain):
                return profile
        raise UnsupportedDomain(hostname or url)

    def lookup_or_generic(self, url: str) -> SiteProfile:
        """Like ``lookup`` but falls back to the generic property profile."""
        try:
            return self.lookup(url)
        except UnsupportedDomain:
            return GENERIC_PROFILE


DEFAULT_PROFILES = [
    SiteProfile(
        name="Encuentra24",
        domain="encuentra24.com",
        schema=ENCUENTRA24_SCHEMA,
        prompt="Extrae los datos del inmueble de este anuncio de Encuentra24.",
        mapper=map_encuentra24,
    ),
    SiteProfile(
        name="JamesEdition",
        domain="jamesedition.com",
        schema=JAMESEDITION_SCHEMA,
        prompt="Extract the luxury property details from this JamesEdition listing.",
        mapper=map_jamesedition,
    ),
    SiteProfile(
        name="CompreOAlquile",
        domain="compreoalquile.com",
        schema=COMPREOALQUILE_SCHEMA,
        prompt="Extrae los datos del inmueble de este anuncio de Compre o Alquile.",
        mapper=map_compreoalquile,
    ),
    SiteProfile(
        name="MLS ACOBIR",
        domain="mlsacobir.com",
        schema=MLSACOBIR_SCHEMA,
        prompt="Extrae los datos del inmueble de este listado MLS de ACOBIR.",
        mapper=map_mlsacobir,
    ),
]
