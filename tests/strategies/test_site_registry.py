import pytest

from core.exceptions import UnsupportedDomain
from strategies.site_registry import (
    DEFAULT_LOCATION,
    DEFAULT_PRICE,
    GENERIC_PROFILE,
    SiteProfile,
    SiteRegistry,
    coerce_list,
    coerce_text,
    has_core_fields,
    map_compreoalquile,
    map_encuentra24,
    map_jamesedition,
    map_mlsacobir,
)
from tests.conftest import LISTING_URL, UNKNOWN_URL


class TestSiteRegistry:
    def setup_method(self):
        self.registry = SiteRegistry()

    @pytest.mark.parametrize("url,name", [
        (LISTING_URL, "Encuentra24"),
        ("https://encuentra24.com/listing/1", "Encuentra24"),
        ("https://www.jamesedition.com/real_estate/panama/villa-123", "JamesEdition"),
        ("https://compreoalquile.com/propiedades/casa-456", "CompreOAlquile"),
        ("https://www.mlsacobir.com/listing/789", "MLS ACOBIR"),
    ])
    def test_known_hosts(self, url, name):
        assert self.registry.lookup(url).name == name

    @pytest.mark.parametrize("url", [UNKNOWN_URL, "https://notencuentra24.com/x", "not a url"])
    def test_unknown_hosts_raise(self, url):
        with pytest.raises(UnsupportedDomain):
            self.registry.lookup(url)

    def test_lookup_or_generic(self):
        assert self.registry.lookup_or_generic(UNKNOWN_URL) is GENERIC_PROFILE
        assert self.registry.lookup_or_generic(LISTING_URL).name == "Encuentra24"

    def test_each_schema_uses_its_own_prefix(self):
        prefixes = {
            "Encuentra24": "encuentra24_",
            "JamesEdition": "je_",
            "CompreOAlquile": "coa_",
            "MLS ACOBIR": "mls_",
        }
        for domain in self.registry.domains:
            profile = self.registry.lookup(f"https://{domain}/listing")
            prefix = prefixes[profile.name]
            assert all(field.startswith(prefix) for field in profile.schema["properties"])
            assert all(field.startswith(prefix) for field in profile.schema["required"])

    def test_register_new_site(self):
        registry = SiteRegistry(profiles=[])
        registry.register(SiteProfile(
            name="Example", domain="example.com", schema={}, prompt="", mapper=GENERIC_PROFILE.mapper,
        ))
        assert registry.lookup("https://listings.example.com/1").name == "Example"


class TestMappers:
    def test_encuentra24_scenario(self):
        record = map_encuentra24({
            "encuentra24_title": "Casa en Costa del Este",
            "encuentra24_price": "$450,000",
            "encuentra24_description": "...",
            "encuentra24_amenities": [{"value": "Pool"}],
        })

        assert record.title == "Casa en Costa del Este"
        assert record.price == "$450,000"
        assert record.features == ["Pool"]
        assert record.source == "Encuentra24"
        assert record.location == DEFAULT_LOCATION
        assert record.images == []

    def test_defaults_for_missing_fields(self):
        record = map_compreoalquile({"coa_titulo": "Apartamento en Obarrio"})

        assert record.price == DEFAULT_PRICE
        assert record.location == DEFAULT_LOCATION
        assert record.features == []
        assert record.source == "CompreOAlquile"

    def test_combined_detail_fills_every_measurement(self):
        bullet = "3 recámaras, 2 baños, 150 m2"
        record = map_compreoalquile({"coa_titulo": "Casa", "coa_precio": "$1", "coa_detalles": [bullet]})

        assert record.bedrooms == bullet
        assert record.bathrooms == bullet
        assert record.area == bullet

    def test_mapping_is_total(self):
        for mapper in (map_encuentra24, map_jamesedition, map_compreoalquile, map_mlsacobir):
            for payload in (None, [], "garbage", 42, {}):
                record = mapper(payload)
                assert record.price == DEFAULT_PRICE
                assert record.title == ""

    def test_numbers_become_strings(self):
        record = map_jamesedition({
            "je_title": "Oceanfront Villa",
            "je_price": 2500000,
            "je_bedrooms": 5,
            "je_bathrooms": 4.5,
        })

        assert record.price == "2500000"
        assert record.bedrooms == "5"
        assert record.bathrooms == "4.5"

    def test_details_are_parsed_into_measurements(self):
        record = map_encuentra24({
            "encuentra24_title": "Casa",
            "encuentra24_details": ["3 recámaras", "2.5 baños", "250 m2"],
        })

        assert record.bedrooms == "3 recámaras"
        assert record.bathrooms == "2.5 baños"
        assert record.area == "250 m2"

    def test_direct_fields_win_over_details(self):
        record = map_mlsacobir({"mls_title": "Casa", "mls_bedrooms": "4", "mls_features": ["3 bedrooms"]})
        assert record.bedrooms == "4"

    def test_has_core_fields(self):
        profile = SiteRegistry().lookup(LISTING_URL)
        assert has_core_fields({"encuentra24_price": "$1"}, profile)
        assert not has_core_fields({"encuentra24_description": "Solo texto"}, profile)
        assert not has_core_fields("garbage", profile)


class TestCoercion:
    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (True, ""),
        (3, "3"),
        (2.5, "2.5"),
        ("  text  ", "text"),
        ({"name": "Pool"}, "Pool"),
        ({"other": "x"}, ""),
        (["list"], ""),
    ])
    def test_coerce_text(self, value, expected):
        assert coerce_text(value) == expected

    def test_coerce_list(self):
        assert coerce_list(["Pool", {"value": "Gym"}, {"text": "Spa"}, None, ""]) == ["Pool", "Gym", "Spa"]
        assert coerce_list("Pool") == ["Pool"]
        assert coerce_list(None) == []
