"""
Condo Billing - Validação de documentos
CPF e CNPJ com dígitos verificadores (módulo 11)
"""
import re

from .errors import InvalidDocument

CNPJ_WEIGHTS_1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
CNPJ_WEIGHTS_2 = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


def only_digits(value: str) -> str:
    return re.sub(r'\D', '', value or '')


def _check_digit(total: int) -> int:
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(value: str) -> bool:
    """Valida CPF (aceita com ou sem máscara)"""
    cpf = only_digits(value)
    # Sequências repetidas (111.111.111-11) passam no checksum mas são inválidas
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False

    def calc_digit(factor):
        return _check_digit(sum(int(digit) * (factor - i) for i, digit in enumerate(cpf[:factor - 1])))

    return calc_digit(10) == int(cpf[9]) and calc_digit(11) == int(cpf[10])


def is_valid_cnpj(value: str) -> bool:
    """Valida CNPJ (aceita com ou sem máscara)"""
    cnpj = only_digits(value)
    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False

    def calc_digit(weights):
        return _check_digit(sum(int(digit) * weight for digit, weight in zip(cnpj, weights)))

    return (calc_digit(CNPJ_WEIGHTS_1) == int(cnpj[12]) and
            calc_digit(CNPJ_WEIGHTS_2) == int(cnpj[13]))


def validate_document(number: str, document_type: str = None) -> str:
    """
    Valida CPF/CNPJ e retorna apenas os dígitos.

    Se document_type não for informado, o tipo é deduzido pelo tamanho.
    Levanta InvalidDocument em qualquer falha.
    """
    digits = only_digits(number)
    kind = (document_type or ("CNPJ" if len(digits) == 14 else "CPF")).upper()

    if kind == "CPF":
        valid = is_valid_cpf(digits)
    elif kind == "CNPJ":
        valid = is_valid_cnpj(digits)
    else:
        raise InvalidDocument(f"Tipo de documento não suportado: {document_type}", document_type=document_type)

    if not valid:
        raise InvalidDocument(f"{kind} inválido", document_type=kind)

    return digits
