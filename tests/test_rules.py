import pytest

from agenda_nutri.config import load_config
from agenda_nutri.domain.rules import (
    DomainError,
    bmi,
    bmi_category,
    categories_for,
    validate_amount,
    validate_gender,
    validate_status,
)


def test_validate_gender_and_status():
    validate_gender("female")
    validate_status("no-show")
    with pytest.raises(DomainError):
        validate_gender("f")
    with pytest.raises(DomainError):
        validate_status("done")


def test_amount_cannot_be_negative():
    validate_amount(0)
    with pytest.raises(DomainError):
        validate_amount(-0.01)


def test_categories_per_type():
    cfg = load_config()
    assert "Consultas" in categories_for(cfg, "income")
    assert "Aluguel" in categories_for(cfg, "expense")
    with pytest.raises(DomainError):
        categories_for(cfg, "transfer")


def test_bmi():
    assert bmi(70, 175) == 22.9
    assert bmi(70, 0) == 0.0
    assert bmi_category(18.4) == "Baixo peso"
    assert bmi_category(18.5) == "Normal"
    assert bmi_category(25) == "Sobrepeso"
    assert bmi_category(30) == "Obesidade"
