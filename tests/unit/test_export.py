"""Tests for spreadsheet export of submitted records."""

import pandas as pd
import pytest

from intake.lib.export import (
    SHEET_NAME,
    export_records,
    from_legacy_codes,
    read_export,
    to_frame,
    to_legacy_codes,
)

RECORD = {
    "tipoDocumentoId": "CEDULA",
    "numeroIdentificacion": "1712345678",
    "primerApellido": "PEREZ",
    "primerNombre": "ANA",
    "paisNacionalidadId": "ECUADOR",
    "tipoSangre": "O+",
    "porcentajeDiscapacidad": "NA",
    "montoBeca": "0",
    "cantidadMiembrosHogar": 4,
}


def test_to_legacy_codes_maps_enumerated_fields():
    row = to_legacy_codes(RECORD)

    assert row["tipoDocumentoId"] == 1
    assert row["paisNacionalidadId"] == 218
    assert row["tipoSangre"] == "O+"
    assert row["primerNombre"] == "ANA"
    assert row["cantidadMiembrosHogar"] == 4


def test_from_legacy_codes_reverses_mapping():
    row = to_legacy_codes(RECORD)

    assert from_legacy_codes(row) == RECORD


def test_from_legacy_codes_drops_empty_cells():
    record = from_legacy_codes({"primerNombre": "ANA", "segundoNombre": float("nan"), "correoElectronico": ""})

    assert record == {"primerNombre": "ANA"}


def test_to_frame_puts_schema_columns_first():
    df = to_frame([RECORD, {**RECORD, "observaciones": "x"}])

    assert list(df.columns[:2]) == ["tipoDocumentoId", "numeroIdentificacion"]
    assert df.columns[-1] == "observaciones"
    assert len(df) == 2


@pytest.mark.parametrize("suffix", [".xlsx", ".csv"])
def test_export_and_read_back(tmp_path, suffix):
    path = export_records([RECORD], tmp_path / "out" / f"estudiantes{suffix}")

    assert path.exists()
    assert read_export(path) == [RECORD]


def test_xlsx_sheet_holds_legacy_codes(tmp_path):
    path = export_records([RECORD], tmp_path / "estudiantes.xlsx")

    df = pd.read_excel(path, sheet_name=SHEET_NAME, engine="openpyxl")

    assert df.loc[0, "paisNacionalidadId"] == 218


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_records([RECORD], tmp_path / "estudiantes.json")
