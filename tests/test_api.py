from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from app.core.errors import RemoteUnavailable
from app.main import app
from app.models import PixCharge, Role
from app.services.invoices import create_adhoc_invoice
from app.services.payment_gateway import PixPayment, get_gateway
from app.utils.dates import today
from tests.utils import TEST_PASSWORD, VALID_CPF, auth_headers, make_user


async def _overdue_invoice(db_session, condominium) -> str:
    invoice = await create_adhoc_invoice(
        db_session,
        condominium.id,
        amount=Decimal("44.91"),
        due_date=today() - timedelta(days=5),
        description="Primeira mensalidade - Plano Essencial (Desconto: 10%)"
    )
    await db_session.commit()
    return invoice.id


def _override_gateway(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_login(client, sindico):
    response = await client.post(
        "/api/auth/login", json={"email": sindico.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["roles"] == ["sindico"]


@pytest.mark.asyncio
async def test_login_wrong_password(client, sindico):
    response = await client.post(
        "/api/auth/login", json={"email": sindico.email, "password": "senha-errada"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_setup_runs_once(client):
    first = await client.post("/api/auth/setup")
    second = await client.post("/api/auth/setup")

    assert first.status_code == 200
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_me_lists_condominiums(client, sindico, condominium):
    response = await client.get("/api/auth/me", headers=auth_headers(sindico))

    assert response.status_code == 200
    assert response.json()["condominium_ids"] == [condominium.id]


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/api/invoices")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_create_condominium_starts_trial(client, sindico):
    response = await client.post(
        "/api/condominiums",
        json={"name": "Edifício Aurora", "cnpj": "11.222.333/0001-81", "city": "Curitiba", "state": "pr"},
        headers=auth_headers(sindico)
    )

    assert response.status_code == 201
    data = response.json()
    assert data["state"] == "PR"
    assert data["subscription"]["plan"] == "start"
    assert data["subscription"]["is_trial"] is True


@pytest.mark.asyncio
async def test_create_condominium_invalid_cnpj(client, sindico):
    response = await client.post(
        "/api/condominiums",
        json={"name": "Edifício Aurora", "cnpj": "11.111.111/1111-11"},
        headers=auth_headers(sindico)
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_document"


@pytest.mark.asyncio
async def test_consume_until_quota_exceeded(client, sindico, condominium):
    url = f"/api/subscriptions/{condominium.id}/consume"
    headers = auth_headers(sindico)

    first = await client.post(url, json={"kind": "notification", "amount": 10}, headers=headers)
    rejected = await client.post(url, json={"kind": "notification"}, headers=headers)

    assert first.status_code == 200
    assert first.json()["remaining"] == 0
    assert rejected.status_code == 409
    body = rejected.json()
    assert body["error"] == "quota_exceeded"
    assert body["detail"]["used"] == 10
    assert body["retryable"] is False

    detail = await client.get(f"/api/subscriptions/{condominium.id}", headers=headers)
    assert detail.json()["usage"]["notification"]["used"] == 10


@pytest.mark.asyncio
async def test_consume_rejects_invalid_kind(client, sindico, condominium):
    response = await client.post(
        f"/api/subscriptions/{condominium.id}/consume",
        json={"kind": "sms", "amount": 1},
        headers=auth_headers(sindico)
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_morador_cannot_list_invoices(client, db_session, condominium):
    morador = await make_user(
        db_session, "apto101@jardins.com.br", [Role.MORADOR], condominium_ids=[condominium.id]
    )

    response = await client.get("/api/invoices", headers=auth_headers(morador))

    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


@pytest.mark.asyncio
async def test_invoice_list_shows_effective_status_and_discount(client, db_session, sindico, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)

    response = await client.get("/api/invoices", headers=auth_headers(sindico))

    assert response.status_code == 200
    [invoice] = response.json()
    assert invoice["id"] == invoice_id
    assert invoice["status"] == "pending"
    assert invoice["effective_status"] == "overdue"
    assert invoice["original_amount"] == 49.9
    assert invoice["discount_value"] == 4.99
    assert invoice["discount_percent"] == 10.0

    overdue_only = await client.get("/api/invoices", params={"status": "overdue"}, headers=auth_headers(sindico))
    assert len(overdue_only.json()) == 1

    stats = await client.get("/api/invoices/stats", headers=auth_headers(sindico))
    assert stats.json()["overdue"] == {"count": 1, "total": 44.91}
    assert stats.json()["pending"]["count"] == 0


@pytest.mark.asyncio
async def test_manual_payment_is_recorded_once(client, db_session, super_admin, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)
    url = f"/api/invoices/{invoice_id}/pay"
    payload = {"payment_method": "pix", "payment_reference": "E2E123"}

    first = await client.post(url, json=payload, headers=auth_headers(super_admin))
    second = await client.post(url, json=payload, headers=auth_headers(super_admin))

    assert first.status_code == 200
    assert first.json()["effective_status"] == "paid"
    assert first.json()["payment_method"] == "pix"
    assert second.status_code == 409
    assert second.json()["error"] == "already_paid"


@pytest.mark.asyncio
async def test_sindico_cannot_record_payment(client, db_session, sindico, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)

    response = await client.post(
        f"/api/invoices/{invoice_id}/pay",
        json={"payment_method": "dinheiro"},
        headers=auth_headers(sindico)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_pix_with_invalid_document_never_reaches_gateway(client, db_session, sindico, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)
    gateway = MagicMock()
    _override_gateway(gateway)

    response = await client.post(
        "/api/payments/pix",
        json={
            "invoice_id": invoice_id,
            "payer_email": "sindico@jardins.com.br",
            "payer_name": "Maria Souza",
            "payer_document_type": "CPF",
            "payer_document_number": "529.982.247-00"
        },
        headers=auth_headers(sindico)
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_document"
    gateway.create_pix_payment.assert_not_called()


@pytest.mark.asyncio
async def test_pix_charge_is_stored(client, db_session, sindico, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)
    gateway = MagicMock()
    gateway.create_pix_payment.return_value = PixPayment(
        payment_id="555",
        status="pending",
        qr_code="00020126580014br.gov.bcb.pix",
        qr_code_base64=None,
        ticket_url=None,
        expiration_date=None,
        raw={"id": 555, "status": "pending"},
    )
    _override_gateway(gateway)

    response = await client.post(
        "/api/payments/pix",
        json={
            "invoice_id": invoice_id,
            "payer_email": "sindico@jardins.com.br",
            "payer_name": "Maria Souza",
            "payer_document_number": VALID_CPF
        },
        headers=auth_headers(sindico)
    )

    assert response.status_code == 200
    assert response.json()["payment_id"] == "555"

    payment_data = gateway.create_pix_payment.call_args[0][0]
    assert payment_data["external_reference"] == invoice_id
    assert payment_data["payer"]["identification"] == {"type": "CPF", "number": "52998224725"}

    result = await db_session.execute(select(PixCharge).where(PixCharge.invoice_id == invoice_id))
    assert result.scalar_one().gateway_payment_id == "555"


@pytest.mark.asyncio
async def test_webhook_marks_invoice_paid(client, db_session, super_admin, condominium):
    invoice_id = await _overdue_invoice(db_session, condominium)
    gateway = MagicMock()
    gateway.get_payment.return_value = {
        "id": 987,
        "status": "approved",
        "external_reference": invoice_id,
        "payment_type_id": "bank_transfer",
    }
    _override_gateway(gateway)
    body = {"type": "payment", "data": {"id": "987"}}

    first = await client.post("/api/payments/webhook", json=body)
    repeated = await client.post("/api/payments/webhook", json=body)

    assert first.json() == {"status": "processed", "payment_status": "approved", "confirmed": True}
    assert repeated.json()["confirmed"] is False

    invoice = await client.get(f"/api/invoices/{invoice_id}", headers=auth_headers(super_admin))
    assert invoice.json()["status"] == "paid"
    assert invoice.json()["payment_method"] == "mercadopago_bank_transfer"
    assert invoice.json()["payment_reference"] == "987"


@pytest.mark.asyncio
async def test_webhook_answers_200_on_gateway_error(client):
    gateway = MagicMock()
    gateway.get_payment.side_effect = RemoteUnavailable(operation="get_payment")
    _override_gateway(gateway)

    with patch("app.services.payments.notify_error_async") as notify:
        response = await client.post(
            "/api/payments/webhook", json={"type": "payment", "data": {"id": "987"}}
        )

    assert response.status_code == 200
    assert response.json()["status"] == "error"
    assert notify.call_args.kwargs["error_type"] == "WEBHOOK_ERROR"


@pytest.mark.asyncio
async def test_webhook_ignores_other_topics(client):
    _override_gateway(MagicMock())

    response = await client.post("/api/payments/webhook", json={"type": "merchant_order"})

    assert response.json() == {"status": "ignored", "type": "merchant_order"}


@pytest.mark.asyncio
async def test_invoice_sort_preferences(client, sindico):
    headers = auth_headers(sindico)

    default = await client.get("/api/auth/me/preferences", headers=headers)
    assert default.json() == {"invoice_sort_field": "due_date", "invoice_sort_direction": "desc"}

    updated = await client.put(
        "/api/auth/me/preferences", json={"invoice_sort_field": "amount"}, headers=headers
    )
    assert updated.json() == {"invoice_sort_field": "amount", "invoice_sort_direction": "desc"}

    invalid = await client.put(
        "/api/auth/me/preferences", json={"invoice_sort_direction": "up"}, headers=headers
    )
    assert invalid.status_code == 422


@pytest.mark.asyncio
async def test_plans_listed_in_display_order(client, sindico):
    response = await client.get("/api/plans", headers=auth_headers(sindico))

    assert [plan["slug"] for plan in response.json()] == ["start", "essencial", "profissional", "enterprise"]


@pytest.mark.asyncio
async def test_only_super_admin_runs_rollover(client, sindico, super_admin):
    denied = await client.post("/api/jobs/rollover", headers=auth_headers(sindico))
    allowed = await client.post("/api/jobs/rollover", headers=auth_headers(super_admin))

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["errors"] == []


@pytest.mark.asyncio
async def test_end_trial_only_while_in_trial(client, sindico, condominium):
    url = f"/api/subscriptions/{condominium.id}/end-trial"

    first = await client.post(url, headers=auth_headers(sindico))
    second = await client.post(url, headers=auth_headers(sindico))

    assert first.status_code == 200
    assert first.json()["subscription"]["is_trial"] is False
    assert first.json()["invoice"] is None
    assert second.status_code == 409
    assert second.json()["error"] == "not_in_trial"
