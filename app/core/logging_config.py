"""
Condo Billing - Logging
Configuração do logging raiz (texto ou JSON)
"""
import logging
import json
import sys
from typing import Any

from .config import settings


class JSONFormatter(logging.Formatter):
    """Formatador de logs em JSON para ingestão por ferramentas de observabilidade"""

    def format(self, record: logging.LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def setup_logging():
    """Configura o logging raiz da aplicação"""
    logger = logging.getLogger()
    logger.setLevel(settings.LOG_LEVEL.upper())

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    # Remove handlers existentes para evitar duplicação
    logger.handlers = []
    logger.addHandler(handler)

    # Reduz ruído de bibliotecas
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
