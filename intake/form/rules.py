"""Dependency rules: how driver fields govern dependent fields.

Each rule is a pure function of the driver's current value. It returns one
``Effect`` per dependent, so applying the same driver value twice always
produces the same dependent state.

A field has at most one *primary* rule, the one that decides whether it is
enabled and which sentinel it holds. Secondary rules may only add validators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Mapping

from intake.form.constants import (
    CLEARED,
    NOT_APPLICABLE,
    NOT_AVAILABLE,
    ZERO_AMOUNT,
    has_no_scholarship,
    is_affirmative,
    is_empty,
    is_home_country,
    is_indigenous,
    is_negative,
    is_study_only,
    normalize_code,
)
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldSchema
from intake.lib.errors import ConfigurationError
from intake.lib.validators import Validator, fixed_length, integer_digits, required


@dataclass(frozen=True)
class Effect:
    """What a rule prescribes for one dependent field.

    Attributes:
        enable: True/False to enable or disable the field, None to leave it
        set_value: Value to force (a sentinel), None to leave the value
        validators: Validators added on top of the field's defaults
        clear_validators: Drop validators contributed by secondary rules
        release_sentinel: Reset the value to empty if it still holds a sentinel
    """

    enable: bool | None = None
    set_value: str | None = None
    validators: tuple[Validator, ...] = ()
    clear_validators: bool = False
    release_sentinel: bool = False

    @classmethod
    def inactive(cls, sentinel: str) -> "Effect":
        """Disable, force the sentinel, no rule validators."""
        return cls(enable=False, set_value=sentinel, clear_validators=True)

    @classmethod
    def active(cls, *validators: Validator) -> "Effect":
        """Enable with the given validators, releasing a leftover sentinel."""
        return cls(enable=True, validators=tuple(validators), release_sentinel=True)

    @classmethod
    def neutral(cls) -> "Effect":
        """Driver not chosen yet: enabled, no rule validators."""
        return cls(enable=True, release_sentinel=True)


EffectFunction = Callable[[str], Mapping[str, Effect]]


@dataclass(frozen=True)
class DependencyRule:
    """A driver field and the effect its value has on its dependents."""

    driver: str
    dependents: tuple[str, ...]
    effect: EffectFunction = field(compare=False, repr=False)
    primary: bool = True
    description: str = ""

    def effects(self, driver_value: Any) -> dict[str, Effect]:
        """Effects for every dependent this value affects."""
        result = dict(self.effect(normalize_code(driver_value)))
        unexpected = set(result) - set(self.dependents)
        if unexpected:
            raise ConfigurationError(
                f"Rule on '{self.driver}' produced effects for undeclared dependents",
                value=sorted(unexpected),
            )
        return result

    def effect_for(self, field_id: str, driver_value: Any) -> Effect | None:
        return self.effects(driver_value).get(field_id)


class RuleSet:
    """Validated collection of dependency rules.

    Raises:
        ConfigurationError: A rule references an unknown field, a driver
            governs itself, or two primary rules govern the same field.
    """

    def __init__(self, rules: Iterable[DependencyRule], schema: FieldSchema = FIELD_SCHEMA):
        self.schema = schema
        self._rules = tuple(rules)
        self._primary: dict[str, DependencyRule] = {}
        self._governing: dict[str, list[DependencyRule]] = {}

        for rule in self._rules:
            self._check_rule(rule)
            for dependent in rule.dependents:
                if rule.primary:
                    existing = self._primary.get(dependent)
                    if existing is not None:
                        raise ConfigurationError(
                            f"Field '{dependent}' has two primary drivers",
                            field=dependent,
                            details={"drivers": f"{existing.driver}, {rule.driver}"},
                            suggestion="Mark one of the rules as secondary (primary=False)",
                        )
                    self._primary[dependent] = rule
                self._governing.setdefault(dependent, []).append(rule)

        # Primary rule first so its effect is applied before any narrowing
        for field_id, governing in self._governing.items():
            governing.sort(key=lambda r: not r.primary)

    def _check_rule(self, rule: DependencyRule) -> None:
        for field_id in (rule.driver, *rule.dependents):
            if field_id not in self.schema:
                raise ConfigurationError(
                    f"Rule on '{rule.driver}' references unknown field", value=field_id
                )
        if rule.driver in rule.dependents:
            raise ConfigurationError("A driver cannot govern itself", field=rule.driver)

    def __iter__(self) -> Iterator[DependencyRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def drivers(self) -> list[str]:
        seen: list[str] = []
        for rule in self._rules:
            if rule.driver not in seen:
                seen.append(rule.driver)
        return seen

    def is_driver(self, field_id: str) -> bool:
        return any(rule.driver == field_id for rule in self._rules)

    def rules_for_driver(self, driver: str) -> list[DependencyRule]:
        return [rule for rule in self._rules if rule.driver == driver]

    def dependents_of(self, driver: str) -> list[str]:
        dependents: list[str] = []
        for rule in self.rules_for_driver(driver):
            for dependent in rule.dependents:
                if dependent not in dependents:
                    dependents.append(dependent)
        return dependents

    def governing(self, field_id: str) -> list[DependencyRule]:
        """Rules governing a field, primary rule first."""
        return list(self._governing.get(field_id, []))

    def primary_for(self, field_id: str) -> DependencyRule | None:
        return self._primary.get(field_id)

    def governed_fields(self) -> list[str]:
        return [d.id for d in self.schema if d.id in self._governing]


# Default rules

DISABILITY_DEPENDENTS = ("disability_percentage", "disability_card_number", "disability_type")
BIRTHPLACE_DEPENDENTS = ("birth_province", "birth_canton")
RESIDENCE_DEPENDENTS = ("residence_province", "residence_canton")
INTERNSHIP_DEPENDENTS = ("internship_hours", "internship_environment", "internship_sector")
SCHOLARSHIP_REASONS = tuple(f"scholarship_reason_{n}" for n in range(1, 7))
SCHOLARSHIP_DEPENDENTS = SCHOLARSHIP_REASONS + (
    "scholarship_amount",
    "tuition_coverage_pct",
    "maintenance_coverage_pct",
)


def _neutral(dependents: Iterable[str]) -> dict[str, Effect]:
    return {dependent: Effect.neutral() for dependent in dependents}


def _disability_effect(value: str) -> dict[str, Effect]:
    if is_negative(value):
        return {
            "disability_percentage": Effect.inactive(NOT_AVAILABLE),
            "disability_card_number": Effect.inactive(NOT_AVAILABLE),
            "disability_type": Effect.inactive(NOT_APPLICABLE),
        }
    if is_affirmative(value):
        return {
            "disability_percentage": Effect.active(required(), integer_digits(3)),
            "disability_card_number": Effect.active(required(), fixed_length(7)),
            "disability_type": Effect.active(required()),
        }
    return _neutral(DISABILITY_DEPENDENTS)


def _ethnicity_effect(value: str) -> dict[str, Effect]:
    if is_empty(value):
        return _neutral(["indigenous_group"])
    if is_indigenous(value):
        return {"indigenous_group": Effect.active(required())}
    return {"indigenous_group": Effect.inactive(NOT_APPLICABLE)}


def _birthplace_effect(value: str) -> dict[str, Effect]:
    if is_empty(value):
        return _neutral(BIRTHPLACE_DEPENDENTS)
    if is_home_country(value):
        return {dependent: Effect.active() for dependent in BIRTHPLACE_DEPENDENTS}
    return {dependent: Effect.inactive(NOT_AVAILABLE) for dependent in BIRTHPLACE_DEPENDENTS}


def _residence_effect(value: str) -> dict[str, Effect]:
    if is_empty(value):
        return _neutral(RESIDENCE_DEPENDENTS)
    if is_home_country(value):
        return {dependent: Effect.active(required()) for dependent in RESIDENCE_DEPENDENTS}
    return {dependent: Effect.inactive(NOT_AVAILABLE) for dependent in RESIDENCE_DEPENDENTS}


def _occupation_effect(value: str) -> dict[str, Effect]:
    if is_empty(value):
        return _neutral(["income_source"])
    if is_study_only(value):
        return {"income_source": Effect.inactive(NOT_APPLICABLE)}
    return {"income_source": Effect.active(required())}


def _internship_effect(value: str) -> dict[str, Effect]:
    if is_negative(value):
        # The group stays visible and mandatory, holding its sentinels
        return {
            "internship_hours": Effect(enable=True, set_value=NOT_AVAILABLE, validators=(required(),)),
            "internship_environment": Effect(enable=True, set_value=NOT_APPLICABLE, validators=(required(),)),
            "internship_sector": Effect(enable=True, set_value=NOT_APPLICABLE, validators=(required(),)),
        }
    if is_affirmative(value):
        return {
            "internship_hours": Effect.active(required(), integer_digits(3)),
            "internship_environment": Effect.active(required()),
            "internship_sector": Effect.active(required()),
        }
    return _neutral(INTERNSHIP_DEPENDENTS)


def _scholarship_effect(value: str) -> dict[str, Effect]:
    if is_empty(value):
        return _neutral(SCHOLARSHIP_DEPENDENTS)
    if has_no_scholarship(value):
        effects = {reason: Effect.inactive(NOT_APPLICABLE) for reason in SCHOLARSHIP_REASONS}
        effects["scholarship_amount"] = Effect.inactive(ZERO_AMOUNT)
        effects["tuition_coverage_pct"] = Effect.inactive(NOT_AVAILABLE)
        effects["maintenance_coverage_pct"] = Effect.inactive(NOT_AVAILABLE)
        return effects
    effects = {reason: Effect.active(required()) for reason in SCHOLARSHIP_REASONS}
    effects["scholarship_amount"] = Effect.active(required(), integer_digits(5))
    effects["tuition_coverage_pct"] = Effect.active(required(), integer_digits(3))
    effects["maintenance_coverage_pct"] = Effect.active(required(), integer_digits(3))
    return effects


def _project_effect(value: str) -> dict[str, Effect]:
    if is_negative(value):
        return {"project_scope": Effect.inactive(CLEARED)}
    if is_affirmative(value):
        return {"project_scope": Effect.active()}
    return _neutral(["project_scope"])


DEFAULT_RULES = RuleSet(
    [
        DependencyRule("disability", DISABILITY_DEPENDENTS, _disability_effect,
                       description="Disability details only apply to students with a disability"),
        DependencyRule("ethnicity", ("indigenous_group",), _ethnicity_effect,
                       description="Indigenous people or nationality only applies to indigenous students"),
        DependencyRule("nationality_country", BIRTHPLACE_DEPENDENTS, _birthplace_effect,
                       description="Birth province and canton only exist for Ecuadorian nationals"),
        DependencyRule("residence_country", RESIDENCE_DEPENDENTS, _residence_effect,
                       description="Residence province and canton are required when living in Ecuador"),
        DependencyRule("occupation", ("income_source",), _occupation_effect,
                       description="Income source only applies to working students"),
        DependencyRule("did_internship", INTERNSHIP_DEPENDENTS, _internship_effect,
                       description="Internship details hold sentinels when no internship was done"),
        DependencyRule("scholarship_type", SCHOLARSHIP_DEPENDENTS, _scholarship_effect,
                       description="Scholarship reasons and amounts only apply with a scholarship"),
        DependencyRule("community_project", ("project_scope",), _project_effect,
                       description="Project scope only applies when participating in a project"),
    ]
)
