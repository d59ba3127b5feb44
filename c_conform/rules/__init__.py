"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass

from c_conform.config import RuleConfig
from c_conform.rules.base import SEVERITY_BY_STRICTNESS, BaseRule, Finding, Rule
from c_conform.rules.comments import FunctionDocRule, FunctionReturnDocRule
from c_conform.rules.comparison import ComparisonOrderRule
from c_conform.rules.conditions import AssignmentInConditionRule, ExplicitBooleanTestRule
from c_conform.rules.doxygen import (
    DoxygenCommentStyleRule,
    DoxygenTagOrderRule,
    FieldDocRule,
    FileHeaderRule,
    FunctionDiagramRule,
    TypeDocRule,
)
from c_conform.rules.formatting import (
    BracesRequiredRule,
    IndentationRule,
    LineLengthRule,
    OneDeclarationPerLineRule,
    OneStatementPerLineRule,
    TabIndentationRule,
)
from c_conform.rules.naming import (
    ConstantNamingRule,
    FileNamingRule,
    FunctionNamingRule,
    StdintTypesRule,
    TypeNamingRule,
    VariableNamingRule,
)
from c_conform.rules.prohibited import (
    DynamicAllocationRule,
    MagicNumberRule,
    NoGlobalVariablesRule,
    NoGotoRule,
    SideEffectInCallRule,
    SingleReturnRule,
)
from c_conform.rules.switch import SwitchBreakRule, SwitchDefaultRule
from c_conform.rules.syntax import UnterminatedBlockRule
from c_conform.rules.whitespace import (
    EmptyParenthesesRule,
    SpaceAroundOperatorsRule,
    SpaceInsideParenthesesRule,
)

__all__ = [
    "Finding",
    "Rule",
    "RuleInfo",
    "build_rules",
    "default_rules",
    "list_rule_info",
    "resolve_active_packs",
]

DEFAULT_PACKS = ("syntax", "naming", "formatting", "control", "comments", "prohibited")


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    description: str
    strictness: str
    severity: str
    packs: tuple[str, ...]
    default_enabled: bool


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_id: str
    factory: Callable[[RuleConfig], Rule]
    name: str
    description: str
    strictness: str
    packs: tuple[str, ...]


def default_rules() -> list[Rule]:
    """Return the default rule set."""
    return build_rules(RuleConfig())


def build_rules(config: RuleConfig | None = None) -> list[Rule]:
    """Build rule instances applying pack and enable/disable filters.

    ``enabled_rules`` selects rules explicitly and overrides pack selection,
    which is also the only way to turn on ``may`` rules.
    """
    config = config or RuleConfig()
    specs = _ordered_rule_specs()
    registry = {spec.rule_id: spec for spec in specs}
    disabled_set = set(config.disabled_rules)
    requested_ids = set(config.enabled_rules or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    if config.enabled_rules is None:
        candidates = set(
            _candidate_rule_ids(
                specs=specs,
                active_packs=resolve_active_packs(
                    enabled_packs=config.enable_packs,
                    disabled_packs=config.disable_packs,
                ),
            )
        )
        selected_ids = [
            spec.rule_id
            for spec in specs
            if spec.rule_id in candidates and spec.rule_id not in disabled_set
        ]
    else:
        selected_ids = [
            rule_id for rule_id in _dedupe(config.enabled_rules) if rule_id not in disabled_set
        ]
    return [registry[rule_id].factory(config) for rule_id in selected_ids]


def list_rule_info(
    *,
    enabled_packs: list[str] | None = None,
    disabled_packs: list[str] | None = None,
) -> list[RuleInfo]:
    """Return metadata for all known rules."""
    specs = _ordered_rule_specs()
    default_enabled = set(
        _candidate_rule_ids(
            specs=specs,
            active_packs=resolve_active_packs(
                enabled_packs=enabled_packs,
                disabled_packs=disabled_packs,
            ),
        )
    )
    info: list[RuleInfo] = []
    for spec in specs:
        info.append(
            RuleInfo(
                rule_id=spec.rule_id,
                name=spec.name,
                description=spec.description,
                strictness=spec.strictness,
                severity=SEVERITY_BY_STRICTNESS[spec.strictness],
                packs=spec.packs,
                default_enabled=spec.rule_id in default_enabled,
            )
        )
    return info


def resolve_active_packs(
    *,
    enabled_packs: list[str] | None,
    disabled_packs: list[str] | None,
) -> set[str]:
    """Resolve active packs from the defaults plus explicit pack overrides."""
    known_packs = _known_packs(_ordered_rule_specs())
    _validate_packs(enabled_packs or [], known_packs)
    _validate_packs(disabled_packs or [], known_packs)

    active_packs = set(DEFAULT_PACKS)
    active_packs.update(enabled_packs or [])
    active_packs.difference_update(disabled_packs or [])
    return active_packs


def _candidate_rule_ids(
    *,
    specs: list[_RuleSpec],
    active_packs: set[str],
) -> list[str]:
    return [
        spec.rule_id
        for spec in specs
        if active_packs.intersection(spec.packs) and spec.strictness != "may"
    ]


def _validate_packs(packs: list[str], known_packs: set[str]) -> None:
    unknown_packs = [pack for pack in packs if pack not in known_packs]
    if unknown_packs:
        joined = ", ".join(sorted(set(unknown_packs)))
        raise ValueError(f"Unknown rule packs: {joined}")


def _known_packs(specs: list[_RuleSpec]) -> set[str]:
    known: set[str] = set()
    for spec in specs:
        known.update(spec.packs)
    return known


def _ordered_rule_specs() -> list[_RuleSpec]:
    return [
        _spec(UnterminatedBlockRule, packs=("syntax",)),
        _spec(FileNamingRule, packs=("naming",)),
        _spec(ConstantNamingRule, packs=("naming",)),
        _spec(TypeNamingRule, packs=("naming",)),
        _spec(StdintTypesRule, packs=("naming",)),
        _spec(VariableNamingRule, packs=("naming",)),
        _spec(FunctionNamingRule, packs=("naming",)),
        _spec(IndentationRule, packs=("formatting",)),
        _spec(TabIndentationRule, packs=("formatting",)),
        _spec(BracesRequiredRule, packs=("formatting",)),
        _spec(OneStatementPerLineRule, packs=("formatting",)),
        _spec(OneDeclarationPerLineRule, packs=("formatting",)),
        _spec(LineLengthRule, packs=("formatting", "doxygen")),
        _spec(SpaceAroundOperatorsRule, packs=("whitespace",)),
        _spec(SpaceInsideParenthesesRule, packs=("whitespace",)),
        _spec(EmptyParenthesesRule, packs=("whitespace",)),
        _spec(ComparisonOrderRule, packs=("control",)),
        _spec(SwitchDefaultRule, packs=("control",)),
        _spec(SwitchBreakRule, packs=("control",)),
        _spec(ExplicitBooleanTestRule, packs=("control",)),
        _spec(AssignmentInConditionRule, packs=("control",)),
        _spec(FunctionDocRule, packs=("comments", "doxygen")),
        _spec(FunctionReturnDocRule, packs=("comments", "doxygen")),
        _spec(MagicNumberRule, packs=("prohibited",)),
        _spec(NoGotoRule, packs=("prohibited",)),
        _spec(SingleReturnRule, packs=("prohibited",)),
        _spec(DynamicAllocationRule, packs=("prohibited",)),
        _spec(SideEffectInCallRule, packs=("prohibited",)),
        _spec(NoGlobalVariablesRule, packs=("design",)),
        _spec(FileHeaderRule, packs=("doxygen",)),
        _spec(TypeDocRule, packs=("doxygen",)),
        _spec(FieldDocRule, packs=("doxygen",)),
        _spec(DoxygenCommentStyleRule, packs=("doxygen",)),
        _spec(FunctionDiagramRule, packs=("doxygen",)),
        _spec(DoxygenTagOrderRule, packs=("doxygen",)),
    ]


def _spec(rule_cls: type[BaseRule], *, packs: tuple[str, ...]) -> _RuleSpec:
    return _RuleSpec(
        rule_id=rule_cls.rule_id,
        factory=rule_cls,
        name=rule_cls.__name__,
        description=(rule_cls.__doc__ or "").strip().partition("\n")[0],
        strictness=rule_cls.strictness,
        packs=packs,
    )


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output
