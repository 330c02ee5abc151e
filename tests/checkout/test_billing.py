from domain.checkout.billing import format_street, project_billing_address, update_billing_profile


FINNISH_ADDRESS = {
    "given_name": "Testperson-fi",
    "family_name": "Approved",
    "street_address": "Kiväärikatu 10",
    "postal_code": "28100",
    "city": "Pori",
    "country": "fi",
}


def test_projects_street_address():
    address = project_billing_address(FINNISH_ADDRESS)

    assert address.given_name == "Testperson-fi"
    assert address.family_name == "Approved"
    assert address.address_line1 == "Kiväärikatu 10"
    assert address.postal_code == "28100"
    assert address.locality == "Pori"
    assert address.country_code == "FI"


def test_street_name_and_number():
    assert format_street({"street_name": "Erottajankatu", "street_number": "5"}) == "Erottajankatu 5"


def test_street_address_takes_precedence():
    remote = {"street_address": "Hellersbergstraße 14", "street_name": "Other", "street_number": "1"}
    assert format_street(remote) == "Hellersbergstraße 14"


def test_missing_street_is_empty():
    assert format_street({}) == ""
    assert project_billing_address({}).country_code == ""


def test_update_billing_profile(order_factory):
    order = order_factory()
    assert update_billing_profile(order, FINNISH_ADDRESS) is True
    assert order.billing_profile.address.locality == "Pori"


def test_update_without_billing_profile(order_factory):
    order = order_factory(billing=False)
    assert update_billing_profile(order, FINNISH_ADDRESS) is False
    assert order.billing_profile is None
