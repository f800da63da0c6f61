"""
Condo Billing - Error Notification
Envia email quando falhas críticas ocorrem (gateway de pagamento, job de virada)
"""
import logging
import smtplib
import threading
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

# Cache para evitar spam de emails (mesmo erro em sequencia)
_error_cache = {}
_CACHE_TTL_SECONDS = 300  # 5 minutos entre emails do mesmo erro


def _get_error_key(error_type: str, error_msg: str) -> str:
    """Gera chave unica para o erro"""
    return f"{error_type}:{error_msg[:100]}"


def _should_send_notification(error_key: str) -> bool:
    """Verifica se deve enviar notificacao (evita spam)"""
    now = datetime.utcnow()

    if error_key in _error_cache:
        last_sent = _error_cache[error_key]
        if (now - last_sent).total_seconds() < _CACHE_TTL_SECONDS:
            return False

    _error_cache[error_key] = now
    return True


def _build_body(
    error_type: str,
    error_message: str,
    error_details: Optional[str],
    condominium_id: Optional[str],
    invoice_id: Optional[str],
    endpoint: Optional[str],
) -> str:
    timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")
    rows = [
        ("Tipo do Erro", error_type),
        ("Mensagem", error_message),
        ("Data/Hora", timestamp),
    ]
    if condominium_id:
        rows.append(("Condomínio", condominium_id))
    if invoice_id:
        rows.append(("Fatura", invoice_id))
    if endpoint:
        rows.append(("Endpoint", endpoint))
    if error_details:
        rows.append(("Detalhes Técnicos", f"<pre>{error_details[:2000]}</pre>"))

    fields = "".join(
        f"<p><strong>{label}</strong><br><code>{value}</code></p>" for label, value in rows
    )
    return f"<html><body><h2>&#9888; Erro no {settings.APP_NAME}</h2>{fields}</body></html>"


def send_error_notification(
    error_type: str,
    error_message: str,
    error_details: Optional[str] = None,
    condominium_id: Optional[str] = None,
    invoice_id: Optional[str] = None,
    endpoint: Optional[str] = None,
):
    """
    Envia email de notificacao de erro.

    Args:
        error_type: Tipo do erro (ex: "PIX_ERROR", "WEBHOOK_ERROR", "ROLLOVER_ERROR")
        error_message: Mensagem resumida do erro
        error_details: Stack trace ou detalhes tecnicos
        condominium_id: Condomínio afetado (se aplicavel)
        invoice_id: Fatura afetada (se aplicavel)
        endpoint: Endpoint que gerou o erro
    """
    if not settings.ERROR_NOTIFICATION_ENABLED:
        return

    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("SMTP nao configurado - notificacao de erro nao enviada")
        return

    error_key = _get_error_key(error_type, error_message)
    if not _should_send_notification(error_key):
        logger.debug(f"Notificacao de erro suprimida (spam protection): {error_key}")
        return

    try:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = f"[{settings.APP_NAME} ERRO] {error_type}: {error_message[:50]}"
        msg['From'] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg['To'] = settings.ERROR_NOTIFICATION_EMAIL
        msg.attach(MIMEText(
            _build_body(error_type, error_message, error_details, condominium_id, invoice_id, endpoint),
            'html'
        ))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"Notificacao de erro enviada: {error_type}")

    except Exception as e:
        logger.error(f"Falha ao enviar notificacao de erro: {e}")


def notify_error_async(error_type: str, error_message: str, error_details: Optional[str] = None, **kwargs):
    """
    Dispara a notificação em thread separada para não bloquear a requisição.
    """
    thread = threading.Thread(
        target=send_error_notification,
        kwargs={
            "error_type": error_type,
            "error_message": error_message,
            "error_details": error_details,
            **kwargs,
        },
        daemon=True,
    )
    thread.start()
