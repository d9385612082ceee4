import pytest
import stripe

from app.configs.app_settings import settings

CHECKOUT_URL = "/api/create-checkout-session"
ALLOWED_ORIGIN = "https://landing.example.com"


@pytest.fixture
def stripe_session(fake_stripe_client):
    fake_stripe_client.checkout.sessions.create_async.return_value = {
        "id": "cs_test_123",
        "url": "https://checkout.stripe.com/c/pay/cs_test_123",
    }
    return fake_stripe_client.checkout.sessions.create_async


def _sent_params(create_async):
    return create_async.await_args.kwargs["params"]


def test_create_checkout_session_success(client, stripe_session):
    response = client.post(CHECKOUT_URL, json={"priceId": "price_pro"}, headers={"Origin": ALLOWED_ORIGIN})

    assert response.status_code == 200
    assert response.json() == {"sessionId": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    stripe_session.assert_awaited_once()
    params = _sent_params(stripe_session)
    assert params["mode"] == "payment"
    assert params["line_items"] == [{"price": "price_pro", "quantity": 1}]
    assert params["success_url"] == "http://localhost:3000/success?session_id={CHECKOUT_SESSION_ID}"
    assert params["cancel_url"] == "http://localhost:3000/cancel"
    assert params["metadata"] == {}
    assert "customer" not in params
    assert "billing_address_collection" not in params


def test_request_without_origin_is_allowed(client, stripe_session):
    response = client.post(CHECKOUT_URL, json={"priceId": "price_basic"})

    assert response.status_code == 200


def test_subscription_mode_adds_billing_settings(client, stripe_session):
    response = client.post(CHECKOUT_URL, json={"priceId": "price_pro", "mode": "subscription", "quantity": 3})

    assert response.status_code == 200
    params = _sent_params(stripe_session)
    assert params["mode"] == "subscription"
    assert params["line_items"] == [{"price": "price_pro", "quantity": 3}]
    assert params["billing_address_collection"] == "auto"
    assert params["payment_method_collection"] == "if_required"


def test_customer_id_takes_precedence_over_email(client, stripe_session):
    response = client.post(
        CHECKOUT_URL,
        json={"priceId": "price_pro", "customerId": "cus_123", "customerEmail": "jo@example.com", "metadata": {"campaign": "spring"}},
    )

    assert response.status_code == 200
    params = _sent_params(stripe_session)
    assert params["customer"] == "cus_123"
    assert "customer_email" not in params
    assert params["metadata"] == {"campaign": "spring"}


def test_customer_email_used_when_no_customer_id(client, stripe_session):
    client.post(CHECKOUT_URL, json={"priceId": "price_pro", "customerEmail": "jo@example.com"})

    params = _sent_params(stripe_session)
    assert params["customer_email"] == "jo@example.com"
    assert "customer" not in params


def test_idempotency_key_is_forwarded(client, stripe_session):
    client.post(CHECKOUT_URL, json={"priceId": "price_pro"}, headers={"Idempotency-Key": "checkout-abc"})

    assert stripe_session.await_args.kwargs["options"] == {"idempotency_key": "checkout-abc"}


# ---------------------------------------------------------------------------------------------------------------------
# rejections


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"quantity": 2},
        {"priceId": ""},
        {"priceId": 42},
        {"priceId": "price_pro", "quantity": 0},
        {"priceId": "price_pro", "quantity": "2"},
        {"priceId": "price_pro", "mode": "donation"},
        {"priceId": "price_pro", "metadata": "not-a-mapping"},
        {"priceId": "price_pro", "customerId": 7},
        ["price_pro"],
        {"price_id": "price_pro"},
        {"price": "price_pro", "quantity": 1},
    ],
)
def test_invalid_body_returns_invalid_request(client, stripe_session, body):
    response = client.post(CHECKOUT_URL, json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"
    stripe_session.assert_not_awaited()


def test_malformed_json_returns_invalid_json(client, stripe_session):
    response = client.post(CHECKOUT_URL, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "INVALID_JSON", "message": "Request body must be valid JSON"}
    stripe_session.assert_not_awaited()


def test_disallowed_origin_is_rejected_before_body_is_parsed(client, stripe_session):
    # the body is not even JSON: a 403 (not a 400) shows the origin check ran first
    response = client.post(
        CHECKOUT_URL, content=b"{not json", headers={"Origin": "https://evil.example.com", "Content-Type": "application/json"}
    )

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
    stripe_session.assert_not_awaited()


# ---------------------------------------------------------------------------------------------------------------------
# Stripe failures


@pytest.mark.parametrize(
    "stripe_error, status_code, error_code",
    [
        (stripe.InvalidRequestError("No such price: 'price_missing'", param="line_items[0][price]"), 400, "STRIPE_INVALID_REQUEST"),
        (stripe.AuthenticationError("Invalid API Key provided"), 500, "STRIPE_AUTH_ERROR"),
        (stripe.RateLimitError("Too many requests"), 429, "RATE_LIMIT_ERROR"),
        (stripe.APIConnectionError("Network down"), 500, "STRIPE_ERROR"),
        (RuntimeError("boom"), 500, "INTERNAL_SERVER_ERROR"),
    ],
)
def test_stripe_errors_map_to_statuses(client, stripe_session, stripe_error, status_code, error_code):
    stripe_session.side_effect = stripe_error

    response = client.post(CHECKOUT_URL, json={"priceId": "price_missing"}, headers={"Origin": ALLOWED_ORIGIN})

    assert response.status_code == status_code
    assert response.json()["error"] == error_code
    # error responses still carry CORS headers
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN


def test_session_without_url_is_a_stripe_error(client, stripe_session):
    stripe_session.return_value = {"id": "cs_test_123", "url": None}

    response = client.post(CHECKOUT_URL, json={"priceId": "price_pro"})

    assert response.status_code == 500
    assert response.json()["error"] == "STRIPE_ERROR"


# ---------------------------------------------------------------------------------------------------------------------
# CORS


def test_preflight_returns_cors_headers(client):
    response = client.options(
        CHECKOUT_URL,
        headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "POST", "Access-Control-Request-Headers": "Content-Type"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert "POST" in response.headers["access-control-allow-methods"]
    assert response.headers["access-control-allow-credentials"] == "true"


def test_bare_options_request_is_answered(client):
    response = client.options(CHECKOUT_URL)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert "Content-Type" in response.headers["access-control-allow-headers"]
    assert response.headers["access-control-allow-credentials"] == "true"


# ---------------------------------------------------------------------------------------------------------------------
# wire format and configuration


def test_snake_case_customer_fields_are_ignored(client, stripe_session):
    response = client.post(CHECKOUT_URL, json={"priceId": "price_pro", "customer_id": "cus_123", "customer_email": "jo@example.com"})

    assert response.status_code == 200
    params = _sent_params(stripe_session)
    assert "customer" not in params
    assert "customer_email" not in params


def test_missing_secret_key_is_a_config_error(client, stripe_session, mocker):
    mocker.patch.object(settings, "STRIPE_SECRET_KEY", "")

    response = client.post(CHECKOUT_URL, json={"priceId": "price_pro"})

    assert response.status_code == 500
    assert response.json() == {"error": "SERVER_CONFIG_ERROR", "message": "Payment system configuration error"}
    stripe_session.assert_not_awaited()


def test_error_responses_are_documented(client):
    operation = client.get("/openapi.json").json()["paths"][CHECKOUT_URL]["post"]

    for status_code in ("400", "403", "429", "500"):
        schema = operation["responses"][status_code]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")
