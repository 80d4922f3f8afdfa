"""Field definitions for the student registration form.

This module declares every field of the form once: its kind, the step it
belongs to, its backend name, the sentinels it may hold while its feature is
inactive, and the static validators derived from that declaration.

Enumerated fields carry no static membership validator. The option lists are
fetched at session start and the dependency engine attaches the membership
check once they are available.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator

from intake.form.constants import CLEARED, NOT_APPLICABLE, NOT_AVAILABLE, ZERO_AMOUNT
from intake.lib.errors import ConfigurationError, UnknownFieldError
from intake.lib.validators import (
    Validator,
    date_format,
    email_format,
    fixed_length,
    integer_digits,
    max_length,
    national_id,
    numeric_text,
    required,
    sentinel_or,
    uppercase,
)


class FieldKind(str, Enum):
    """Semantic type of a field."""

    ENUM = "enum"  # One code from an option list
    INTEGER = "integer"  # Integer of n digits
    TEXT = "text"  # Free text with a maximum length
    DATE = "date"  # YYYY-MM-DD
    FIXED_FORMAT = "fixed_format"  # Exact length and/or pattern


@dataclass(frozen=True)
class FieldDefinition:
    """Static declaration of one form field.

    Attributes:
        id: Internal field id used by the store, rules and steps
        label: Label shown next to the field and in step error lists
        kind: Semantic type
        backend_name: Key of this field in the canonical output record
        step: Id of the step the field belongs to
        options_category: Option-list category for ENUM fields
        digits: Digit count for INTEGER fields
        max_length: Maximum length for TEXT fields
        length: Exact length for FIXED_FORMAT fields
        sentinels: Placeholders meaning "not applicable"; the first one is
            the value forced while the field is disabled
        required: Statically required, independent of any rule
        backend_required: The backend contract always expects this key
        numeric: Emitted as a number in the canonical output record
        uppercase: Value must be uppercase (checked, auto-normalized elsewhere)
        rule_validated: Format validators come from the governing rule only
        extra_validators: Additional static validators
    """

    id: str
    label: str
    kind: FieldKind
    backend_name: str
    step: str
    options_category: str | None = None
    digits: int | None = None
    max_length: int | None = None
    length: int | None = None
    sentinels: tuple[str, ...] = ()
    required: bool = False
    backend_required: bool = False
    numeric: bool = False
    uppercase: bool = False
    rule_validated: bool = False
    extra_validators: tuple[Validator, ...] = ()

    @property
    def disabled_value(self) -> str:
        """Value the field holds while a rule keeps it disabled."""
        return self.sentinels[0] if self.sentinels else CLEARED

    def is_sentinel(self, value: Any) -> bool:
        return isinstance(value, str) and value in self.sentinels

    @property
    def default_validators(self) -> tuple[Validator, ...]:
        """Static validators: presence, then format checks.

        Format checks accept the field's sentinels.
        """
        validators: list[Validator] = []
        if self.required:
            validators.append(required())

        checks = [] if self.rule_validated else self._format_validators()
        checks.extend(self.extra_validators)

        accepted = tuple(s for s in self.sentinels if s)
        for check in checks:
            validators.append(sentinel_or(check, accepted) if accepted else check)
        return tuple(validators)

    def _format_validators(self) -> list[Validator]:
        if self.kind == FieldKind.INTEGER and self.digits:
            return [integer_digits(self.digits)]
        if self.kind == FieldKind.TEXT:
            checks = [max_length(self.max_length)] if self.max_length else []
            if self.uppercase:
                checks.append(uppercase())
            return checks
        if self.kind == FieldKind.DATE:
            return [date_format()]
        if self.kind == FieldKind.FIXED_FORMAT and self.length:
            return [fixed_length(self.length)]
        return []


class FieldSchema:
    """Ordered, immutable registry of field definitions."""

    def __init__(self, definitions: Iterable[FieldDefinition]):
        self._definitions = tuple(definitions)
        self._by_id: dict[str, FieldDefinition] = {}
        backend_names: set[str] = set()

        for definition in self._definitions:
            if definition.id in self._by_id:
                raise ConfigurationError(
                    "Duplicate field id in schema", value=definition.id
                )
            if definition.backend_name in backend_names:
                raise ConfigurationError(
                    "Duplicate backend name in schema", value=definition.backend_name
                )
            if definition.kind == FieldKind.ENUM and not definition.options_category:
                raise ConfigurationError(
                    "Enumerated field without an options category",
                    field=definition.id,
                )
            self._by_id[definition.id] = definition
            backend_names.add(definition.backend_name)

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._by_id

    def __getitem__(self, field_id: str) -> FieldDefinition:
        try:
            return self._by_id[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self._definitions]

    def by_backend_name(self) -> dict[str, FieldDefinition]:
        return {d.backend_name: d for d in self._definitions}

    def for_step(self, step_id: str) -> list[FieldDefinition]:
        return [d for d in self._definitions if d.step == step_id]

    def step_ids(self) -> list[str]:
        """Step ids in first-appearance order."""
        seen: list[str] = []
        for definition in self._definitions:
            if definition.step not in seen:
                seen.append(definition.step)
        return seen

    def backend_required(self) -> list[FieldDefinition]:
        return [d for d in self._definitions if d.backend_required]

    def option_categories(self) -> list[str]:
        categories: list[str] = []
        for definition in self._definitions:
            category = definition.options_category
            if category and category not in categories:
                categories.append(category)
        return categories


def _enum(id: str, label: str, backend_name: str, step: str, category: str, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(id, label, FieldKind.ENUM, backend_name, step, options_category=category, **kwargs)


def _integer(id: str, label: str, backend_name: str, step: str, digits: int, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(id, label, FieldKind.INTEGER, backend_name, step, digits=digits, **kwargs)


def _text(id: str, label: str, backend_name: str, step: str, max_len: int, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(id, label, FieldKind.TEXT, backend_name, step, max_length=max_len, **kwargs)


def _date(id: str, label: str, backend_name: str, step: str, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(id, label, FieldKind.DATE, backend_name, step, **kwargs)


def _fixed(id: str, label: str, backend_name: str, step: str, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(id, label, FieldKind.FIXED_FORMAT, backend_name, step, **kwargs)


_NA = (NOT_AVAILABLE,)
_NO_APLICA = (NOT_APPLICABLE,)

_REASON_LABELS = ("Primera", "Segunda", "Tercera", "Cuarta", "Quinta", "Sexta")

FIELD_SCHEMA = FieldSchema(
    [
        # Identification
        _enum("document_type", "Tipo de documento", "tipoDocumentoId", "identification",
              "TipoDocumento", required=True, backend_required=True),
        _fixed("id_number", "Número de identificación", "numeroIdentificacion", "identification",
               extra_validators=(national_id("document_type"),), required=True, backend_required=True),
        _text("first_surname", "Primer apellido", "primerApellido", "identification", 60,
              uppercase=True, required=True, backend_required=True),
        _text("second_surname", "Segundo apellido", "segundoApellido", "identification", 60,
              uppercase=True, sentinels=_NA),
        _text("first_name", "Primer nombre", "primerNombre", "identification", 60,
              uppercase=True, required=True, backend_required=True),
        _text("second_name", "Segundo nombre", "segundoNombre", "identification", 60,
              uppercase=True, sentinels=_NA),
        # Personal data
        _enum("sex", "Sexo", "sexoId", "personal_data", "Sexo", required=True, backend_required=True),
        _enum("gender", "Género", "generoId", "personal_data", "Genero", required=True, backend_required=True),
        _enum("marital_status", "Estado civil", "estadocivilId", "personal_data", "EstadoCivil",
              required=True, backend_required=True),
        _enum("ethnicity", "Etnia", "etniaId", "personal_data", "Etnia", required=True, backend_required=True),
        _enum("indigenous_group", "Pueblo o nacionalidad", "pueblonacionalidadId", "personal_data",
              "PuebloNacionalidad", sentinels=_NO_APLICA, backend_required=True),
        _enum("blood_type", "Tipo de sangre", "tipoSangre", "personal_data", "TipoSangre",
              required=True, backend_required=True),
        _date("birth_date", "Fecha de nacimiento", "fechaNacimiento", "personal_data",
              required=True, backend_required=True),
        # Disability
        _enum("disability", "Discapacidad", "discapacidad", "disability", "Discapacidad",
              required=True, backend_required=True),
        _integer("disability_percentage", "Porcentaje de discapacidad", "porcentajeDiscapacidad",
                 "disability", 3, sentinels=_NA, rule_validated=True, backend_required=True),
        _fixed("disability_card_number", "Número de carnet CONADIS", "numCarnetConadis", "disability",
               length=7, sentinels=_NA, rule_validated=True, backend_required=True),
        _enum("disability_type", "Tipo de discapacidad", "tipoDiscapacidad", "disability",
              "TipoDiscapacidad", sentinels=_NO_APLICA, backend_required=True),
        # Nationality and residence
        _enum("nationality_country", "País de nacionalidad", "paisNacionalidadId", "nationality", "Pais",
              required=True, backend_required=True),
        _enum("birth_province", "Provincia de nacimiento", "provinciaNacimientoId", "nationality",
              "Provincia", sentinels=_NA, backend_required=True),
        _enum("birth_canton", "Cantón de nacimiento", "cantonNacimientoId", "nationality", "Canton",
              sentinels=_NA, backend_required=True),
        _enum("residence_country", "País de residencia", "paisResidenciaId", "nationality", "Pais",
              required=True, backend_required=True),
        _enum("residence_province", "Provincia de residencia", "provinciaResidenciaId", "nationality",
              "Provincia", sentinels=_NA, backend_required=True),
        _enum("residence_canton", "Cantón de residencia", "cantonResidenciaId", "nationality", "Canton",
              sentinels=_NA, backend_required=True),
        # Academic
        _enum("school_type", "Tipo de colegio", "tipoColegioId", "academic", "TipoColegio"),
        _enum("career_modality", "Modalidad de la carrera", "modalidadCarrera", "academic", "ModalidadCarrera"),
        _enum("career_schedule", "Jornada de la carrera", "jornadaCarrera", "academic", "JornadaCarrera"),
        _date("career_start_date", "Fecha de inicio de la carrera", "fechaInicioCarrera", "academic"),
        _date("enrollment_date", "Fecha de matrícula", "fechaMatricula", "academic"),
        _enum("enrollment_type", "Tipo de matrícula", "tipoMatriculaId", "academic", "TipoMatricula"),
        _enum("academic_level", "Nivel académico que cursa", "nivelAcademicoQueCursa", "academic",
              "NivelAcademico"),
        _integer("academic_period_length", "Duración del periodo académico", "duracionPeriodoAcademico",
                 "academic", 2, numeric=True),
        _enum("has_repeated_subject", "Ha repetido al menos una materia", "haRepetidoAlMenosUnaMateria",
              "academic", "HaRepetidoAlMenosUnaMateria"),
        _enum("section_group", "Paralelo", "paraleloId", "academic", "Paralelo"),
        _enum("lost_free_tuition", "Ha perdido la gratuidad", "haPerdidoLaGratuidad", "academic",
              "HaPerdidoLaGratuidad"),
        _enum("differentiated_fee", "Recibe pensión diferenciada", "recibePensionDiferenciada", "academic",
              "RecibePensionDiferenciada"),
        # Economic
        _enum("occupation", "Ocupación del estudiante", "estudianteocupacionId", "economic",
              "EstudianteOcupacion", backend_required=True),
        _enum("income_source", "Ingresos del estudiante", "ingresosestudianteId", "economic",
              "IngresosEstudiante", sentinels=_NO_APLICA),
        _enum("development_bonus", "Bono de desarrollo humano", "bonodesarrolloId", "economic",
              "BonoDesarrollo"),
        # Internship
        _enum("did_internship", "Ha realizado prácticas preprofesionales",
              "haRealizadoPracticasPreprofesionales", "internship",
              "HaRealizadoPracticasPreprofesionales", backend_required=True),
        _integer("internship_hours", "Horas de prácticas por periodo",
                 "nroHorasPracticasPreprofesionalesPorPeriodo", "internship", 3,
                 sentinels=_NA, rule_validated=True, backend_required=True),
        _enum("internship_environment", "Entorno institucional de las prácticas",
              "entornoInstitucionalPracticasProfesionales", "internship",
              "EntornoInstitucionalPracticasProfesionales", sentinels=_NO_APLICA, backend_required=True),
        _enum("internship_sector", "Sector económico de las prácticas",
              "sectorEconomicoPracticaProfesional", "internship",
              "SectorEconomicoPracticaProfesional", sentinels=_NO_APLICA, backend_required=True),
        # Scholarships and aid
        _enum("scholarship_type", "Tipo de beca", "tipoBecaId", "scholarship_aid", "TipoBeca",
              backend_required=True),
        *[
            _enum(f"scholarship_reason_{n}", f"{prefix} razón de la beca",
                  f"{prefix.lower()}RazonBecaId", "scholarship_aid", f"{prefix}RazonBeca",
                  sentinels=_NO_APLICA, backend_required=True)
            for n, prefix in enumerate(_REASON_LABELS, start=1)
        ],
        _integer("scholarship_amount", "Monto de la beca", "montoBeca", "scholarship_aid", 5,
                 sentinels=(ZERO_AMOUNT,), rule_validated=True, backend_required=True),
        _integer("tuition_coverage_pct", "Porcentaje de cobertura del arancel",
                 "porcientoBecaCoberturaArancel", "scholarship_aid", 3, sentinels=_NA, rule_validated=True,
                 backend_required=True),
        _integer("maintenance_coverage_pct", "Porcentaje de cobertura de manutención",
                 "porcientoBecaCoberturaManuntencion", "scholarship_aid", 3, sentinels=_NA,
                 rule_validated=True, backend_required=True),
        _enum("scholarship_funding", "Financiamiento de la beca", "financiamientoBeca", "scholarship_aid",
              "FinanciamientoBeca"),
        _integer("financial_aid_amount", "Monto de ayuda económica", "montoAyudaEconomica",
                 "scholarship_aid", 5, sentinels=_NA),
        _integer("education_loan_amount", "Monto de crédito educativo", "montoCreditoEducativo",
                 "scholarship_aid", 5, sentinels=_NA),
        # Community outreach
        _enum("community_project", "Participa en proyecto de vinculación con la sociedad",
              "participaEnProyectoVinculacionSociedad", "community_outreach",
              "ParticipaEnProyectoVinculacionSociedad", backend_required=True),
        _enum("project_scope", "Alcance del proyecto de vinculación", "tipoAlcanceProyectoVinculacionId",
              "community_outreach", "TipoAlcanceProyectoVinculacion", sentinels=(CLEARED,)),
        # Contact
        _text("email", "Correo electrónico", "correoElectronico", "contact", 30, sentinels=_NA,
              extra_validators=(email_format(),)),
        _fixed("mobile", "Número celular", "numeroCelular", "contact",
               extra_validators=(numeric_text(10),), required=True, backend_required=True),
        # Household
        _enum("father_education", "Nivel de formación del padre", "nivelFormacionPadre", "household",
              "NivelFormacionPadre"),
        _enum("mother_education", "Nivel de formación de la madre", "nivelFormacionMadre", "household",
              "NivelFormacionMadre"),
        _integer("household_income", "Ingreso total del hogar", "ingresoTotalHogar", "household", 4,
                 sentinels=_NA),
        _integer("household_members", "Cantidad de miembros del hogar", "cantidadMiembrosHogar",
                 "household", 2, required=True, numeric=True, backend_required=True),
    ]
)


def get_field(field_id: str) -> FieldDefinition:
    """Look up a field in the default schema."""
    return FIELD_SCHEMA[field_id]
