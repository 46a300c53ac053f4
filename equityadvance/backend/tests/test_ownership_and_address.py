import pytest

from equity_api.domain.address import extract_state_from_address, normalize_address_key, split_address, state_name
from equity_api.domain.ownership import detect_ownership_type, map_property_type


@pytest.mark.parametrize(
    "owners, expected",
    [
        ("JOHN SMITH & JANE SMITH", "Personal"),
        ("VINCENT PRICE", "Personal"),
        ("SMITH FAMILY TRUST", "Trust"),
        ("JOHN DOE TR", "Trust"),
        ("ACME HOLDINGS LLC", "LLC"),
        ("Acme Holdings, L.L.C.", "LLC"),
        ("SMITH TRUST LLC", "LLC"),
        ("WIDGETS INC", "Corporation"),
        ("GLOBEX CORPORATION", "Corporation"),
        ("ALPHA BETA LP", "Partnership"),
        ("SMITH & JONES LLP", "Partnership"),
        ("", "Personal"),
        (None, "Personal"),
    ],
)
def test_detect_ownership_type(owners, expected):
    assert detect_ownership_type(owners) == expected


def test_map_property_type_covers_both_vendors():
    assert map_property_type("SINGLE FAMILY RESIDENCE") == "Single Family"
    assert map_property_type("Condominium") == "Condo"
    assert map_property_type("Duplex") == "Multi-Family"
    assert map_property_type("Mobile Home") == "Manufactured"
    assert map_property_type("Cabin") == "Cabin"
    assert map_property_type("") == "Single Family"
    assert map_property_type(None) == "Single Family"


def test_extract_state_from_address():
    assert extract_state_from_address("123 Oak Ave, Phoenix, AZ 85001") == "AZ"
    assert extract_state_from_address("500 Elm Rd, Columbus, OH 43004, USA") == "OH"
    assert extract_state_from_address("somewhere nice") == ""


def test_split_address():
    assert split_address("123 Oak Ave, Phoenix, AZ 85001") == ("123 Oak Ave", "Phoenix, AZ 85001")
    with pytest.raises(ValueError, match="Address format invalid"):
        split_address("123 Oak Ave Phoenix AZ")


def test_normalize_address_key_folds_case_and_whitespace():
    a = normalize_address_key("  123 Oak   Ave, Phoenix, AZ 85001, USA ")
    b = normalize_address_key("123 oak ave, phoenix, az 85001")
    assert a == b == "123 OAK AVE, PHOENIX, AZ 85001"


def test_state_name():
    assert state_name("dc") == "District of Columbia"
    assert state_name("ZZ") == "ZZ"
