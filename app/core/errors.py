"""
Condo Billing - Domain Errors
Taxonomia de erros de cobrança/limites

Cada erro carrega um código estável (usado pelo frontend para escolher a
mensagem), o status HTTP e detalhes para exibição.
"""
from typing import Optional


class BillingError(Exception):
    """Erro base do domínio de cobrança"""
    code = "billing_error"
    status_code = 400
    message = "Erro de cobrança"
    retryable = False

    def __init__(self, message: Optional[str] = None, **detail):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "detail": self.detail,
            "retryable": self.retryable,
        }


class QuotaExceeded(BillingError):
    code = "quota_exceeded"
    status_code = 409
    message = "Limite do plano atingido para este recurso"


class PeriodExpired(BillingError):
    code = "period_expired"
    status_code = 409
    message = "Período de cobrança encerrado. Aguarde a renovação do período."


class SubscriptionInactive(BillingError):
    code = "subscription_inactive"
    status_code = 403
    message = "Assinatura inativa"


class AlreadyPaid(BillingError):
    code = "already_paid"
    status_code = 409
    message = "Esta fatura já foi paga"


class NoSubscriptionFound(BillingError):
    code = "no_subscription_found"
    status_code = 404
    message = "Nenhuma assinatura encontrada para este condomínio"


class InvalidDocument(BillingError):
    code = "invalid_document"
    status_code = 422
    message = "CPF/CNPJ inválido"


class RemoteUnavailable(BillingError):
    code = "remote_unavailable"
    status_code = 503
    message = "Serviço externo indisponível. Tente novamente."
    retryable = True


class InvoiceNotFound(BillingError):
    code = "invoice_not_found"
    status_code = 404
    message = "Fatura não encontrada"


class CondominiumNotFound(BillingError):
    code = "condominium_not_found"
    status_code = 404
    message = "Condomínio não encontrado"


class PlanNotFound(BillingError):
    code = "plan_not_found"
    status_code = 404
    message = "Plano não encontrado"


class PermissionDenied(BillingError):
    code = "permission_denied"
    status_code = 403
    message = "Você não tem permissão para esta operação"


class NotInTrial(BillingError):
    code = "not_in_trial"
    status_code = 409
    message = "A assinatura não está em período de teste"
