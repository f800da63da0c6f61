"""
Condo Billing - Date helpers
Datas são gravadas como UTC sem timezone (mesmo padrão das colunas DateTime)
"""
import calendar
from datetime import datetime, date, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def add_months(value, months: int):
    """Soma meses mantendo o dia (limitado ao último dia do mês destino)"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_business_days(value: date, days: int) -> date:
    """Soma dias úteis (segunda a sexta)"""
    current = value
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def format_br(value: date) -> str:
    """dd/mm/yyyy"""
    return value.strftime("%d/%m/%Y")
