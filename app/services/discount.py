"""
Condo Billing - Discount Reconstruction
O desconto não tem coluna própria: fica no texto da descrição ("Desconto: 15%").
Aqui o valor original é recalculado a partir do valor líquido.
"""
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Tuple

DISCOUNT_PATTERN = re.compile(r"desconto:\s*(\d+(?:[.,]\d+)?)\s*%", re.IGNORECASE)

CENTS = Decimal("0.01")


def parse_discount_percent(description: Optional[str]) -> Optional[Decimal]:
    """Percentual de desconto na descrição, se houver e estiver entre 0 e 100"""
    if not description:
        return None

    match = DISCOUNT_PATTERN.search(description)
    if not match:
        return None

    try:
        percent = Decimal(match.group(1).replace(",", "."))
    except InvalidOperation:
        return None

    if percent <= 0 or percent >= 100:
        return None
    return percent


def reconstruct_amounts(amount, description: Optional[str]) -> Tuple[Decimal, Decimal, Optional[Decimal]]:
    """
    Retorna (valor_original, valor_desconto, percentual).

    Ex.: 85.00 com "Desconto: 15%" -> (100.00, 15.00, 15)
    """
    net = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    percent = parse_discount_percent(description)
    if percent is None:
        return net, Decimal("0.00"), None

    original = (net / (1 - percent / Decimal(100))).quantize(CENTS, rounding=ROUND_HALF_UP)
    discount = (original - net).quantize(CENTS, rounding=ROUND_HALF_UP)
    return original, discount, percent
