"""Tests for website fact extraction."""

from src.models import ServingMode
from src.prompts.facts import (
    MAX_SERVICES,
    detect_serving_mode,
    extract_facts,
    extract_service_areas,
    extract_services,
    select_trade,
)

PAVING_TEXT = (
    "Acme Paving offers asphalt paving, sealcoating and driveway repair for residential and "
    "commercial customers including Worcester, Shrewsbury and Grafton. Free estimate on request."
)


class TestSelectTrade:
    """Tests for trade selection."""

    def test_hint_wins(self):
        assert select_trade("we fix water heaters", "HVAC contractor") == "hvac"

    def test_inferred_priority(self):
        assert select_trade("asphalt driveways and water heater installs") == "paving"
        assert select_trade("drain cleaning and furnace tune-ups") == "plumbing"

    def test_no_trade(self):
        assert select_trade("we bake bread") is None


class TestExtractServices:
    """Tests for service keyword extraction."""

    def test_paving_services(self):
        services = extract_services(PAVING_TEXT)
        assert "paving" in services
        assert "asphalt" in services
        assert "sealcoating" in services
        assert "driveway" in services
        assert "repair" in services
        assert "free estimate" in services

    def test_partial_mention_matches_longest_word(self):
        services = extract_services("We install new furnaces and every kind of thermostat", "hvac")
        assert "furnace" in services
        assert "thermostat" in services

    def test_deduped_and_capped(self):
        text = " ".join(keyword for keyword in [
            "hvac", "heating", "air conditioning", "furnace", "heat pump", "ductless mini split",
            "duct cleaning", "thermostat", "ac repair", "repair", "installation", "maintenance",
            "service", "emergency service", "free estimate", "free quote",
        ])
        services = extract_services(text, "hvac")
        assert len(services) == MAX_SERVICES
        assert len(services) == len({service.lower() for service in services})


class TestExtractServiceAreas:
    """Tests for service-area extraction."""

    def test_including_list(self):
        areas = extract_service_areas(PAVING_TEXT)
        assert areas[:3] == ["Worcester", "Shrewsbury", "Grafton"]

    def test_including_and_surrounding(self):
        areas = extract_service_areas("We serve homeowners including Boston, Worcester and surrounding areas.")
        assert areas == ["Boston", "Worcester"]

    def test_place_pairs(self):
        areas = extract_service_areas("Offices in Salem, Lynn and Boston, Quincy.")
        assert "Salem" in areas
        assert "Lynn" in areas
        assert "Boston" in areas
        assert "Quincy" in areas

    def test_short_entries_dropped(self):
        areas = extract_service_areas("Serving everyone including NY, Albany area.")
        assert "NY" not in areas
        assert "Albany" in areas

    def test_nothing_found(self):
        assert extract_service_areas("we do good work") == []


class TestServingModeAndFacts:
    """Tests for serving mode detection and the combined extractor."""

    def test_serving_modes(self):
        assert detect_serving_mode("Residential and Commercial") == ServingMode.BOTH
        assert detect_serving_mode("residential only") == ServingMode.RESIDENTIAL
        assert detect_serving_mode("commercial lots") == ServingMode.COMMERCIAL
        assert detect_serving_mode("hello") == ServingMode.UNKNOWN

    def test_extract_facts(self):
        facts = extract_facts(PAVING_TEXT)
        assert facts.serving_mode == ServingMode.BOTH
        assert "Worcester" in facts.service_area
        assert "sealcoating" in facts.services
        assert not facts.is_empty()

    def test_no_text(self):
        assert extract_facts(None).is_empty()
        assert extract_facts("").is_empty()
