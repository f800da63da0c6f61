import pytest

from app.core.documents import is_valid_cpf, is_valid_cnpj, validate_document, only_digits
from app.core.errors import InvalidDocument
from tests.utils import VALID_CPF, VALID_CNPJ


@pytest.mark.parametrize("cpf", ["111.111.111-11", "123.456.789-00", "000.000.000-00", "529.982.247", ""])
def test_invalid_cpfs_are_rejected(cpf):
    assert is_valid_cpf(cpf) is False


def test_valid_cpf_with_and_without_mask():
    assert is_valid_cpf(VALID_CPF)
    assert is_valid_cpf(only_digits(VALID_CPF))
    assert is_valid_cpf("123.456.789-09")


def test_cnpj_check_digits():
    assert is_valid_cnpj(VALID_CNPJ)
    assert not is_valid_cnpj("11.222.333/0001-82")
    assert not is_valid_cnpj("11.111.111/1111-11")


def test_validate_document_returns_digits_and_infers_type():
    assert validate_document(VALID_CPF) == "52998224725"
    assert validate_document(VALID_CNPJ) == "11222333000181"


def test_validate_document_raises_invalid_document():
    with pytest.raises(InvalidDocument) as exc:
        validate_document("123.456.789-00", "CPF")

    assert exc.value.code == "invalid_document"
    assert exc.value.status_code == 422


def test_validate_document_type_mismatch():
    with pytest.raises(InvalidDocument):
        validate_document(VALID_CPF, "CNPJ")
