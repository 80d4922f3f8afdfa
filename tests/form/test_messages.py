"""Tests for user-facing messages and the reference catalog."""

from __future__ import annotations

import pytest

from intake.form.catalog import REFERENCE_OPTIONS, from_legacy, option_lists, to_legacy
from intake.form.messages import FALLBACK_MESSAGE, describe
from intake.lib.validators import (
    VALID,
    ReasonCode,
    ValidationOutcome,
    fixed_length,
    integer_digits,
    integer_range,
    max_length,
    one_of,
)


class TestDescribe:
    """Validation outcomes rendered as messages."""

    def test_valid_outcome_has_no_message(self) -> None:
        assert describe(VALID) == ""

    @pytest.mark.parametrize(
        "digits,expected",
        [
            (3, "Debe ser un número entero de 3 dígitos (0-999)"),
            (5, "Debe ser un número entero de 5 dígitos (0-99999)"),
            (2, "Debe ser un número entero de 2 dígitos (1-99)"),
        ],
    )
    def test_digit_ranges(self, digits: int, expected: str) -> None:
        assert describe(integer_digits(digits)("100000")) == expected

    def test_plain_range(self) -> None:
        assert describe(integer_range(10, 20)("5")) == "Debe ser un número entero entre 10 y 20"

    def test_length_messages(self) -> None:
        assert describe(fixed_length(7)("123")) == "Debe tener exactamente 7 caracteres"
        assert describe(max_length(3)("abcd")) == "Máximo 3 caracteres"

    def test_option_messages(self) -> None:
        assert describe(one_of(["A+"], "TipoSangre")("Z")) == "Tipo de sangre inválido (ej: A+, B-, O+, etc.)"
        assert describe(one_of(["SI"], "Discapacidad")("X")) == "Seleccione una opción válida"

    def test_server_message_passes_through(self) -> None:
        outcome = ValidationOutcome.invalid(ReasonCode.SERVER, message="correoElectronico ya existe")
        assert describe(outcome) == "correoElectronico ya existe"

    def test_server_without_message(self) -> None:
        assert describe(ValidationOutcome.invalid(ReasonCode.SERVER)) == FALLBACK_MESSAGE


class TestCatalog:
    """Reference option lists and legacy codes."""

    def test_option_lists_keep_catalog_order(self) -> None:
        lists = option_lists(["TipoDocumento", "Sexo"])

        assert lists == {"TipoDocumento": ["CEDULA", "PASAPORTE"], "Sexo": ["HOMBRE", "MUJER"]}

    def test_all_categories_by_default(self) -> None:
        assert set(option_lists()) == set(REFERENCE_OPTIONS)

    def test_to_legacy(self) -> None:
        assert to_legacy("Pais", "ECUADOR") == 218
        assert to_legacy("TipoSangre", "O+") == "O+"
        assert to_legacy("Pais", "ATLANTIDA") == "ATLANTIDA"
        assert to_legacy("NoCategory", "X") == "X"

    @pytest.mark.parametrize("legacy", [218, "218", " 218 ", 218.0])
    def test_from_legacy_spellings(self, legacy) -> None:
        assert from_legacy("Pais", legacy) == "ECUADOR"

    def test_from_legacy_unknown_passes_through(self) -> None:
        assert from_legacy("Pais", 9999) == 9999
        assert from_legacy("Pais", "NA") == "NA"
