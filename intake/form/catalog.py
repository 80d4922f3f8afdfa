"""Reference option catalog.

Canonical enumerated option lists, keyed by the category names the backend
uses in its ``/estudiantes/enums`` response. Each option pairs the string code
stored in the form with the legacy numeric code used by older records and by
spreadsheet exports.

The live option lists always come from the option-list provider; this catalog
is used for offline CLI runs, for the legacy code mapping and in tests.
"""

from __future__ import annotations

from typing import Iterable, Union

LegacyCode = Union[int, str]

_YES_NO = (("SI", 1), ("NO", 2))
_REASON = (("SI", 1), ("NO", 2), ("NO_APLICA", 3))
_PARENT_EDUCATION = (
    ("CENTRO_ALFABETIZACION", 1),
    ("EDUCACION_BASICA", 2),
    ("BACHILLERATO", 3),
    ("TECNICO_TECNOLOGICO", 4),
    ("TERCER_NIVEL", 5),
    ("CUARTO_NIVEL", 6),
    ("NINGUNO", 7),
    ("NO_SABE", 8),
)

REFERENCE_OPTIONS: dict[str, tuple[tuple[str, LegacyCode], ...]] = {
    "TipoDocumento": (("CEDULA", 1), ("PASAPORTE", 2)),
    "Sexo": (("HOMBRE", 1), ("MUJER", 2)),
    "Genero": (("MASCULINO", 1), ("FEMENINO", 2), ("OTRO", 3)),
    "EstadoCivil": (
        ("SOLTERO", 1),
        ("CASADO", 2),
        ("DIVORCIADO", 3),
        ("UNION_LIBRE", 4),
        ("VIUDO", 5),
    ),
    "Etnia": (
        ("INDIGENA", 1),
        ("AFROECUATORIANO", 2),
        ("NEGRO", 3),
        ("MULATO", 4),
        ("MONTUVIO", 5),
        ("MESTIZO", 6),
        ("BLANCO", 7),
        ("OTRO", 8),
        ("NO_REGISTRA", 9),
    ),
    "PuebloNacionalidad": (
        ("ACHUAR", 1),
        ("ANDOA", 2),
        ("AWA", 3),
        ("CHACHI", 4),
        ("COFAN", 5),
        ("EPERA", 6),
        ("KICHWA", 7),
        ("SHUAR", 8),
        ("SIONA", 9),
        ("SECOYA", 10),
        ("TSACHILA", 11),
        ("WAORANI", 12),
        ("ZAPARA", 13),
        ("SHIWIAR", 14),
        ("NO_APLICA", 34),
    ),
    # Blood type travels as text in legacy records too
    "TipoSangre": tuple(
        (code, code) for code in ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
    ),
    "Discapacidad": _YES_NO,
    "TipoDiscapacidad": (
        ("INTELECTUAL", 1),
        ("FISICA", 2),
        ("VISUAL", 3),
        ("AUDITIVA", 4),
        ("MENTAL", 5),
        ("PSICOSOCIAL", 6),
        ("NO_APLICA", 7),
    ),
    "TipoColegio": (
        ("FISCAL", 1),
        ("FISCOMISIONAL", 2),
        ("PARTICULAR", 3),
        ("MUNICIPAL", 4),
        ("EXTRANJERO", 5),
        ("NO_REGISTRA", 6),
    ),
    "Pais": (
        ("ECUADOR", 218),
        ("COLOMBIA", 170),
        ("PERU", 604),
        ("VENEZUELA", 862),
        ("CUBA", 192),
        ("ARGENTINA", 32),
        ("CHILE", 152),
        ("ESPANA", 724),
        ("ESTADOS_UNIDOS", 840),
    ),
    "Provincia": (
        ("AZUAY", 1),
        ("BOLIVAR", 2),
        ("CANAR", 3),
        ("CARCHI", 4),
        ("COTOPAXI", 5),
        ("CHIMBORAZO", 6),
        ("EL_ORO", 7),
        ("ESMERALDAS", 8),
        ("GUAYAS", 9),
        ("IMBABURA", 10),
        ("LOJA", 11),
        ("LOS_RIOS", 12),
        ("MANABI", 13),
        ("MORONA_SANTIAGO", 14),
        ("NAPO", 15),
        ("PASTAZA", 16),
        ("PICHINCHA", 17),
        ("TUNGURAHUA", 18),
        ("ZAMORA_CHINCHIPE", 19),
        ("GALAPAGOS", 20),
        ("SUCUMBIOS", 21),
        ("ORELLANA", 22),
        ("SANTO_DOMINGO", 23),
        ("SANTA_ELENA", 24),
    ),
    "Canton": (
        ("CUENCA", 101),
        ("GUARANDA", 201),
        ("AZOGUES", 301),
        ("TULCAN", 401),
        ("LATACUNGA", 501),
        ("RIOBAMBA", 601),
        ("MACHALA", 701),
        ("ESMERALDAS", 801),
        ("GUAYAQUIL", 901),
        ("IBARRA", 1001),
        ("LOJA", 1101),
        ("BABAHOYO", 1201),
        ("PORTOVIEJO", 1301),
        ("MANTA", 1308),
        ("MORONA", 1401),
        ("TENA", 1501),
        ("PASTAZA", 1601),
        ("QUITO", 1701),
        ("RUMINAHUI", 1705),
        ("AMBATO", 1801),
        ("ZAMORA", 1901),
        ("SAN_CRISTOBAL", 2001),
        ("LAGO_AGRIO", 2101),
        ("FRANCISCO_DE_ORELLANA", 2201),
        ("SANTO_DOMINGO", 2301),
        ("SANTA_ELENA", 2401),
    ),
    "ModalidadCarrera": (
        ("PRESENCIAL", 1),
        ("SEMIPRESENCIAL", 2),
        ("DISTANCIA", 3),
        ("DUAL", 4),
        ("EN_LINEA", 5),
    ),
    "JornadaCarrera": (
        ("MATUTINA", 1),
        ("VESPERTINA", 2),
        ("NOCTURNA", 3),
        ("INTENSIVA", 4),
    ),
    "TipoMatricula": (("ORDINARIA", 1), ("EXTRAORDINARIA", 2), ("ESPECIAL", 3)),
    "NivelAcademico": (
        ("PRIMERO", 1),
        ("SEGUNDO", 2),
        ("TERCERO", 3),
        ("CUARTO", 4),
        ("QUINTO", 5),
        ("SEXTO", 6),
        ("SEPTIMO", 7),
        ("OCTAVO", 8),
        ("NOVENO", 9),
    ),
    "HaRepetidoAlMenosUnaMateria": _YES_NO,
    "Paralelo": (("A", 1), ("B", 2), ("C", 3), ("D", 4), ("E", 5)),
    "HaPerdidoLaGratuidad": (("SI", 1), ("NO", 2), ("NO_APLICA", 3)),
    "RecibePensionDiferenciada": _YES_NO,
    "EstudianteOcupacion": (("SOLO_ESTUDIA", 1), ("TRABAJA_Y_ESTUDIA", 2)),
    "IngresosEstudiante": (
        ("FINANCIAMIENTO_PROPIO", 1),
        ("AHORROS", 2),
        ("AYUDA_FAMILIAR", 3),
        ("NO_APLICA", 4),
    ),
    "BonoDesarrollo": _YES_NO,
    "HaRealizadoPracticasPreprofesionales": _YES_NO,
    "EntornoInstitucionalPracticasProfesionales": (
        ("PUBLICO", 1),
        ("PRIVADO", 2),
        ("ONG", 3),
        ("OTRO", 4),
        ("NO_APLICA", 5),
    ),
    "SectorEconomicoPracticaProfesional": (
        ("AGRICULTURA", 1),
        ("MINERIA", 2),
        ("MANUFACTURA", 3),
        ("ELECTRICIDAD", 4),
        ("AGUA", 5),
        ("CONSTRUCCION", 6),
        ("COMERCIO", 7),
        ("TRANSPORTE", 8),
        ("ALOJAMIENTO", 9),
        ("INFORMACION", 10),
        ("FINANCIERAS", 11),
        ("INMOBILIARIAS", 12),
        ("PROFESIONALES", 13),
        ("ADMINISTRATIVAS", 14),
        ("ADMINISTRACION_PUBLICA", 15),
        ("ENSENANZA", 16),
        ("SALUD", 17),
        ("ARTES", 18),
        ("OTROS_SERVICIOS", 19),
        ("HOGARES", 20),
        ("EXTRATERRITORIALES", 21),
        ("NO_APLICA", 22),
    ),
    "TipoBeca": (
        ("TOTAL", 1),
        ("PARCIAL", 2),
        ("DIFERENCIADA", 3),
        ("OTRA", 4),
        ("NO_APLICA", 5),
    ),
    "PrimeraRazonBeca": _REASON,
    "SegundaRazonBeca": _REASON,
    "TerceraRazonBeca": _REASON,
    "CuartaRazonBeca": _REASON,
    "QuintaRazonBeca": _REASON,
    "SextaRazonBeca": _REASON,
    "FinanciamientoBeca": (
        ("FONDOS_PROPIOS", 1),
        ("TRANSFERENCIA_ESTADO", 2),
        ("DONACIONES", 3),
        ("NO_APLICA", 4),
    ),
    "ParticipaEnProyectoVinculacionSociedad": _YES_NO,
    "TipoAlcanceProyectoVinculacion": (
        ("NACIONAL", 1),
        ("PROVINCIAL", 2),
        ("CANTONAL", 3),
        ("PARROQUIAL", 4),
    ),
    "NivelFormacionPadre": _PARENT_EDUCATION,
    "NivelFormacionMadre": _PARENT_EDUCATION,
}

# Forward and reverse legacy code tables, per category
LEGACY_CODES: dict[str, dict[str, LegacyCode]] = {
    category: dict(entries) for category, entries in REFERENCE_OPTIONS.items()
}
CODES_BY_LEGACY: dict[str, dict[LegacyCode, str]] = {
    category: {legacy: code for code, legacy in entries}
    for category, entries in REFERENCE_OPTIONS.items()
}


def option_lists(categories: Iterable[str] | None = None) -> dict[str, list[str]]:
    """Return the reference option codes per category, in catalog order."""
    names = list(categories) if categories is not None else list(REFERENCE_OPTIONS)
    return {name: [code for code, _ in REFERENCE_OPTIONS[name]] for name in names}


def to_legacy(category: str, code: str) -> LegacyCode:
    """Map an option code to its legacy code; unknown codes pass through."""
    return LEGACY_CODES.get(category, {}).get(code, code)


def from_legacy(category: str, legacy: LegacyCode) -> LegacyCode:
    """Map a legacy code back to its option code; unknown codes pass through.

    Spreadsheet readers hand numbers back as ``int`` or as numeric text, so
    both spellings are accepted.
    """
    reverse = CODES_BY_LEGACY.get(category, {})
    if legacy in reverse:
        return reverse[legacy]
    if isinstance(legacy, str) and legacy.strip().isdigit():
        return reverse.get(int(legacy.strip()), legacy)
    if isinstance(legacy, float) and legacy.is_integer():
        return reverse.get(int(legacy), legacy)
    return legacy
