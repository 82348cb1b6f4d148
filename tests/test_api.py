import pytest
from fastapi.testclient import TestClient

from promptqr.api import app
from promptqr.config import settings

HEADERS = {"X-API-Key": settings.api_key}


@pytest.fixture()
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generate_dynamic_payload(client):
    response = client.post("/v1/promptpay", json={"identifier": "081-234-5678", "amount": 100}, headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["identifier_kind"] == "MOBILE"
    assert body["point_of_initiation"] == "12"
    assert "5406100.00" in body["payload"]
    assert body["payload"].endswith("6304" + body["crc"])
    assert response.headers["X-Request-ID"]


def test_generate_static_national_id(client):
    response = client.post("/v1/promptpay", json={"identifier": "1234567890123"}, headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["identifier_kind"] == "NATIONAL_ID"
    assert body["point_of_initiation"] == "11"
    assert body["payload"][:-4].endswith("5802TH53037646304")


def test_generate_requires_api_key(client):
    response = client.post("/v1/promptpay", json={"identifier": "0812345678"}, headers={"X-API-Key": "wrong"})
    assert response.status_code == 401


def test_generate_rejects_identifier_without_digits(client):
    response = client.post("/v1/promptpay", json={"identifier": "no-digits"}, headers=HEADERS)
    assert response.status_code == 422
    assert response.json()["code"] == "ERR_INVALID_IDENTIFIER"


def test_generate_rejects_negative_amount(client):
    response = client.post("/v1/promptpay", json={"identifier": "0812345678", "amount": -5}, headers=HEADERS)
    assert response.status_code == 422
    assert response.json()["code"] == "ERR_INVALID_AMOUNT"


def test_verify_round_trip(client):
    generated = client.post("/v1/promptpay", json={"identifier": "0812345678", "amount": "12.5"}, headers=HEADERS).json()
    response = client.post("/v1/promptpay/verify", json={"payload": generated["payload"]}, headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["actual_crc"] == generated["crc"]
    assert body["fields"]["54"] == "12.50"
    assert body["merchant_account"]["01"] == "0066812345678"


def test_verify_reports_bad_checksum(client):
    generated = client.post("/v1/promptpay", json={"identifier": "0812345678"}, headers=HEADERS).json()
    tampered = generated["payload"].replace("5802TH", "5802TX")
    response = client.post("/v1/promptpay/verify", json={"payload": tampered}, headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["valid"] is False


def test_verify_rejects_malformed_payload(client):
    response = client.post("/v1/promptpay/verify", json={"payload": "0099abc"}, headers=HEADERS)
    assert response.status_code == 400
    assert response.json()["code"] == "ERR_BAD_PAYLOAD"


def test_metrics_exposes_payload_counter(client):
    client.post("/v1/promptpay", json={"identifier": "0812345678"}, headers=HEADERS)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "promptqr_payloads_generated_total" in response.text
