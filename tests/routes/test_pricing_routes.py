from app.configs.pricing_config import get_all_pricing_tiers, get_pricing_tier, get_tier_by_price_id


def test_get_pricing_tier_is_case_insensitive():
    tier = get_pricing_tier("PRO")

    assert tier is not None
    assert tier.price == 2999
    assert tier.popular is True


def test_get_pricing_tier_unknown():
    assert get_pricing_tier("platinum") is None


def test_get_tier_by_price_id():
    assert get_tier_by_price_id("price_enterprise").name == "Enterprise"
    assert get_tier_by_price_id("price_unknown") is None


def test_get_all_pricing_tiers_keeps_catalog_order():
    assert [tier.name for tier in get_all_pricing_tiers()] == ["Basic", "Pro", "Enterprise"]


# ---------------------------------------------------------------------------------------------------------------------


def test_list_pricing_tiers(client):
    response = client.get("/api/pricing")

    assert response.status_code == 200
    tiers = response.json()
    assert [tier["tier_id"] for tier in tiers] == ["basic", "pro", "enterprise"]
    assert tiers[0]["formatted_price"] == "$9.99/month"
    assert tiers[1]["stripe_price_id"] == "price_pro"
    assert tiers[2]["max_users"] == -1


def test_get_single_pricing_tier(client):
    response = client.get("/api/pricing/Enterprise")

    assert response.status_code == 200
    assert response.json()["formatted_price"] == "$99.99/month"


def test_get_missing_pricing_tier(client):
    response = client.get("/api/pricing/platinum")

    assert response.status_code == 404


def test_public_config(client):
    response = client.get("/api/config")

    assert response.json() == {"publishableKey": "pk_test_123", "appUrl": "http://localhost:3000"}
