from unittest.mock import MagicMock, patch

import pytest

from app.core.errors import RemoteUnavailable
from app.services.payment_gateway import MercadoPagoGateway

PIX_RESPONSE = {
    "status": 201,
    "response": {
        "id": 1234567890,
        "status": "pending",
        "status_detail": "pending_waiting_transfer",
        "date_of_expiration": "2026-03-17T12:00:00.000-03:00",
        "point_of_interaction": {
            "transaction_data": {
                "qr_code": "00020126580014br.gov.bcb.pix",
                "qr_code_base64": "iVBORw0KGgo=",
                "ticket_url": "https://www.mercadopago.com.br/payments/1234567890/ticket",
            }
        },
    },
}


def _gateway_with(sdk_mock):
    with patch("app.services.payment_gateway.mercadopago.SDK", return_value=sdk_mock):
        gateway = MercadoPagoGateway(access_token="TEST-token")
        gateway.sdk
    return gateway


def test_create_pix_payment_returns_qr_code():
    sdk = MagicMock()
    sdk.payment.return_value.create.return_value = PIX_RESPONSE
    gateway = _gateway_with(sdk)

    pix = gateway.create_pix_payment({"transaction_amount": 49.9})

    assert pix.payment_id == "1234567890"
    assert pix.status == "pending"
    assert pix.qr_code.startswith("000201")
    assert pix.ticket_url.endswith("/ticket")
    assert "raw" not in pix.to_dict()
    sdk.payment.return_value.create.assert_called_once_with({"transaction_amount": 49.9})


def test_error_status_becomes_remote_unavailable():
    sdk = MagicMock()
    sdk.payment.return_value.create.return_value = {"status": 400, "response": {"message": "invalid payer"}}
    gateway = _gateway_with(sdk)

    with pytest.raises(RemoteUnavailable) as exc_info:
        gateway.create_pix_payment({})
    assert exc_info.value.detail["status"] == 400
    assert exc_info.value.retryable


def test_sdk_exception_becomes_remote_unavailable():
    sdk = MagicMock()
    sdk.payment.return_value.get.side_effect = ConnectionError("timeout")
    gateway = _gateway_with(sdk)

    with pytest.raises(RemoteUnavailable) as exc_info:
        gateway.get_payment("1234567890")
    assert exc_info.value.detail["operation"] == "get_payment"


def test_missing_point_of_interaction():
    sdk = MagicMock()
    sdk.payment.return_value.create.return_value = {"status": 201, "response": {"id": 1, "status": "pending"}}
    gateway = _gateway_with(sdk)

    with pytest.raises(RemoteUnavailable):
        gateway.create_pix_payment({})


def test_get_payment_returns_response_body():
    sdk = MagicMock()
    sdk.payment.return_value.get.return_value = {
        "status": 200,
        "response": {"id": 1, "status": "approved", "external_reference": "abc"},
    }
    gateway = _gateway_with(sdk)

    assert gateway.get_payment(1)["status"] == "approved"


def test_missing_access_token():
    gateway = MercadoPagoGateway()
    gateway.access_token = None

    with pytest.raises(RemoteUnavailable):
        gateway.create_pix_payment({})
