import asyncio

import pytest

from rollizr.exceptions import ConfigError
from rollizr.utils.company_source import (
    build_company_sources,
    GoogleMapsCompanySource,
    MockCompanySource,
    YelpCompanySource,
    estimate_employees,
    get_company_source,
)


def test_mock_source_uses_location_and_term():
    records = asyncio.run(MockCompanySource().search("Miami, FL", "Plumbing"))
    assert len(records) == 1
    assert records[0]["city"] == "Miami"
    assert records[0]["state"] == "FL"
    assert records[0]["vertical"] == "Plumbing"


@pytest.mark.parametrize("reviews,expected", [(0, 3), (29, 3), (30, 5), (150, 10), (399, 15), (1000, 20)])
def test_estimate_employees(reviews, expected):
    assert estimate_employees(reviews) == expected


def test_yelp_normalize():
    business = {
        "id": "abc123",
        "name": "Cool Breeze AC",
        "url": "https://www.coolbreezeac.com/?utm=yelp",
        "phone": "+13055550142",
        "review_count": 120,
        "rating": 4.5,
        "is_closed": False,
        "location": {"address1": "100 Main St", "city": "Miami", "state": "FL", "zip_code": "33101"},
        "coordinates": {"latitude": 25.77, "longitude": -80.19},
        "categories": [{"title": "Heating & Air Conditioning/HVAC"}],
    }
    record = YelpCompanySource(api_key="k").normalize(business, "HVAC")

    assert record["company_id"] == "yelp_abc123"
    assert record["domain"] == "coolbreezeac.com"
    assert record["business_status"] == "OPERATIONAL"
    assert record["yelp_reviews"] == {"count": 120, "average_rating": 4.5}
    assert record["estimated_employees"] == 10
    assert record["categories"] == ["Heating & Air Conditioning/HVAC"]
    assert record["raw_data"] is business


def test_google_maps_normalize():
    place = {
        "place_id": "p1",
        "name": "Peach State Air",
        "formatted_address": "12 Peachtree St, Atlanta, GA 30303, United States",
        "user_ratings_total": 45,
        "rating": 4.8,
        "business_status": "OPERATIONAL",
        "geometry": {"location": {"lat": 33.75, "lng": -84.39}},
        "types": ["point_of_interest"],
    }
    record = GoogleMapsCompanySource(api_key="k").normalize(place, "HVAC")

    assert record["company_id"] == "gmaps_p1"
    assert record["city"] == "Atlanta"
    assert record["state"] == "GA"
    assert record["latitude"] == 33.75
    assert record["estimated_employees"] == 5


def test_factory_and_key_requirement():
    assert isinstance(get_company_source("mock", None), MockCompanySource)
    assert isinstance(get_company_source("yelp", "k"), YelpCompanySource)
    assert isinstance(get_company_source("google_maps", "k"), GoogleMapsCompanySource)
    with pytest.raises(ValueError):
        get_company_source("yelp", None)


def test_build_sources_from_providers_mapping():
    sources = build_company_sources(
        {
            "rate_limit": 40,
            "providers": {"google_maps": {"api_key": "g"}, "yelp": {"api_key": "y", "rate_limit": 10}},
        }
    )
    assert [s.name for s in sources] == ["google_maps", "yelp"]
    assert [s.rate_limit for s in sources] == [40, 10]


def test_build_sources_legacy_and_list_forms():
    assert [s.name for s in build_company_sources({"provider": "mock"})] == ["mock"]
    assert [s.name for s in build_company_sources({})] == ["mock"]
    assert [s.name for s in build_company_sources({"providers": ["mock"]})] == ["mock"]


@pytest.mark.parametrize(
    "section",
    [
        {"providers": {"bing": {}}},
        {"providers": {"yelp": {"api_key": ""}}},
        {"providers": {}},
        {"providers": "yelp"},
    ],
)
def test_build_sources_rejects_bad_config(section):
    with pytest.raises(ConfigError):
        build_company_sources(section)
