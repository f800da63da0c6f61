"""
Condo Billing - Rollover Scheduler
Serviço em background que executa a virada de período uma vez por dia

Este modulo roda em background e:
1. Verifica periodicamente se chegou o horário configurado (ROLLOVER_TIME)
2. Executa a virada de período das assinaturas vencidas
3. Gera as faturas mensais dos planos pagos
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from app.database import AsyncSessionLocal
from app.core.config import settings
from app.services.rollover import run_period_rollover

# Fuso horario padrao do Brasil (UTC-3)
BRAZIL_TZ = ZoneInfo("America/Sao_Paulo")

# Tolerancia em minutos em torno do horario agendado
TOLERANCE_MINUTES = 2

logger = logging.getLogger(__name__)


def parse_schedule_time(value: str):
    """'HH:MM' -> (hora, minuto)"""
    parts = value.split(":")
    hour = int(parts[0])
    minute = int(parts[1]) if len(parts) > 1 else 0
    return hour, minute


def should_run_rollover(now_brazil: datetime, last_run: Optional[datetime], schedule_time: str) -> bool:
    """
    Verifica se a virada deve ser executada agora.
    Compara no horário do Brasil e executa no máximo uma vez por dia.
    """
    scheduled_hour, scheduled_minute = parse_schedule_time(schedule_time)

    if now_brazil.hour != scheduled_hour:
        return False

    if abs(now_brazil.minute - scheduled_minute) > TOLERANCE_MINUTES:
        return False

    if last_run and last_run.date() == now_brazil.date():
        logger.debug(f"[ROLLOVER-SCHEDULER] Ja executou hoje ({last_run.isoformat()})")
        return False

    return True


async def run_rollover_once() -> dict:
    async with AsyncSessionLocal() as db:
        result = await run_period_rollover(db)
        await db.commit()
        return result


async def run_scheduler():
    """
    Loop principal do scheduler.
    Verifica a cada ROLLOVER_CHECK_INTERVAL_SECONDS se a virada precisa rodar.
    """
    logger.info("[ROLLOVER-SCHEDULER] Servico de virada de periodo INICIADO")
    logger.info(f"[ROLLOVER-SCHEDULER] Horario agendado: {settings.ROLLOVER_TIME} (America/Sao_Paulo)")

    last_run = None
    check_count = 0

    while True:
        try:
            check_count += 1
            now_brazil = datetime.now(BRAZIL_TZ)

            # Log periodico a cada 10 verificacoes
            if check_count % 10 == 1:
                logger.info(f"[ROLLOVER-SCHEDULER] Verificacao #{check_count} - {now_brazil.strftime('%Y-%m-%d %H:%M:%S')}")

            if should_run_rollover(now_brazil, last_run, settings.ROLLOVER_TIME):
                # Marca antes de executar para nao repetir no mesmo dia em caso de erro
                last_run = now_brazil
                result = await run_rollover_once()
                logger.info(f"[ROLLOVER-SCHEDULER] Virada concluida: {result}")

        except Exception as e:
            logger.exception(f"[ROLLOVER-SCHEDULER] Erro no loop do scheduler: {e}")

        await asyncio.sleep(settings.ROLLOVER_CHECK_INTERVAL_SECONDS)


# Para executar standalone (debug)
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("Iniciando rollover scheduler em modo standalone...")
    asyncio.run(run_scheduler())
