# talentmatch/matching/scoring.py
"""
Candidate/job match arithmetic.

Two schemes coexist and are kept apart on purpose:

* ``LocalArithmeticStrategy`` scores a stored candidate profile (skills and
  cultural-fit traits) against the job's expected profile, no I/O.
* ``LlmReportStrategy`` turns the per-skill / per-trait candidate scores an
  LLM reported for a (job, resume) pair into the three percentages.

Both take a ``MatchInputs`` and return a ``MatchReport``. Every value is kept
inside its documented range: similarities in [0, 1], percentages in [0, 100].
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from talentmatch.schemas.analysis import MatchReport, SkillMatch, TraitMatch

SCORE_SCALE = 5.0
MISSING_SKILL_PENALTY = 1.0

CULTURAL_FIT_TRAITS = (
    "product_score",
    "service_score",
    "startup_score",
    "mnc_score",
    "loyalty_score",
    "coding_score",
    "leadership_score",
    "architecture_score",
)


# ---------- helpers ----------
def _get(item: Any, key: str, default=None):
    if isinstance(item, Mapping):
        return item.get(key, default)
    return getattr(item, key, default)


def _num(x, default: float = 0.0) -> float:
    try:
        return float(x) if x is not None else default
    except (TypeError, ValueError):
        return default


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _scale(x) -> float:
    return _clamp(_num(x), 0.0, SCORE_SCALE)


# ---------- local arithmetic ----------
def skill_similarity(candidate_skills: Iterable[Any], expected_skills: Iterable[Any]) -> float:
    """
    Weighted share of the expected skill levels the candidate reaches.

    Each expected skill weighs ``max(1, years_experience)``. A matched skill
    adds ``min(candidate, expected) / 5 * weight`` to the numerator and
    ``weight`` to the denominator; a missing one adds only the fixed penalty
    weight to the denominator. No expected skills -> 0.0.
    """
    by_name: dict[str, float] = {}
    for s in candidate_skills or []:
        name = _get(s, "name")
        if name:
            by_name[str(name).strip().lower()] = _scale(_get(s, "score"))

    numerator = 0.0
    denominator = 0.0
    for expected in expected_skills or []:
        name = _get(expected, "name")
        if not name:
            continue
        weight = max(1.0, _num(_get(expected, "years_experience"), 1.0))
        candidate_score = by_name.get(str(name).strip().lower())
        if candidate_score is None:
            denominator += MISSING_SKILL_PENALTY
            continue
        matched = min(candidate_score, _scale(_get(expected, "score")))
        numerator += matched / SCORE_SCALE * weight
        denominator += weight

    if denominator <= 0:
        return 0.0
    return _clamp(numerator / denominator, 0.0, 1.0)


def cultural_fit_similarity(candidate_traits: Mapping[str, Any] | None, expected_traits: Mapping[str, Any] | None) -> float:
    """Mean of ``(5 - |candidate - expected|) / 5`` over the eight traits."""
    if not candidate_traits or not expected_traits:
        return 0.0
    total = 0.0
    for trait in CULTURAL_FIT_TRAITS:
        diff = abs(_scale(candidate_traits.get(trait)) - _scale(expected_traits.get(trait)))
        total += max(0.0, SCORE_SCALE - diff)
    return _clamp(total / len(CULTURAL_FIT_TRAITS) / SCORE_SCALE, 0.0, 1.0)


def weighted_match(skill_sim: float, cultural_sim: float, skill_weight: float = 0.7, cultural_weight: float = 0.3) -> float:
    total = skill_weight + cultural_weight
    if total <= 0:
        return 0.0
    return _clamp((skill_sim * skill_weight + cultural_sim * cultural_weight) / total, 0.0, 1.0)


# ---------- LLM-reported percentages ----------
def percentage_skill_match(candidate_scores: Sequence[float | None]) -> float:
    if not candidate_scores:
        return 0.0
    total = sum(_scale(s) for s in candidate_scores)
    return _clamp(total / (len(candidate_scores) * SCORE_SCALE) * 100, 0.0, 100.0)


def percentage_cultural_fit_match(trait_scores: Iterable[float]) -> float:
    total = sum(_scale(s) for s in trait_scores)
    return _clamp(total / (len(CULTURAL_FIT_TRAITS) * SCORE_SCALE) * 100, 0.0, 100.0)


def percentage_match_score(skill_pct: float, cultural_pct: float, skill_weight: float = 0.6, cultural_weight: float = 0.4) -> float:
    return _clamp(skill_weight * skill_pct + cultural_weight * cultural_pct, 0.0, 100.0)


# ---------- strategies ----------
@dataclass
class MatchInputs:
    per_skill: list[SkillMatch] = field(default_factory=list)
    per_trait: list[TraitMatch] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_profiles(
        cls,
        expected_skills: Iterable[Any],
        expected_cultural_fit: Mapping[str, Any] | None,
        candidate_skills: Iterable[Any],
        candidate_traits: Mapping[str, Any] | None,
    ) -> "MatchInputs":
        by_name = {
            str(_get(s, "name")).strip().lower(): s
            for s in candidate_skills or []
            if _get(s, "name")
        }
        per_skill = []
        for expected in expected_skills or []:
            name = _get(expected, "name")
            if not name:
                continue
            matched = by_name.get(str(name).strip().lower())
            per_skill.append(SkillMatch(
                skill=str(name),
                candidate_score=_scale(_get(matched, "score")) if matched is not None else None,
                expected_score=_scale(_get(expected, "score")),
                years_experience=_num(_get(expected, "years_experience"), 1.0),
                mandatory=bool(_get(expected, "mandatory", False)),
            ))
        expected_cf = expected_cultural_fit or {}
        candidate_cf = candidate_traits or {}
        per_trait = [
            TraitMatch(
                trait=t,
                candidate_score=_scale(candidate_cf.get(t)),
                expected_score=_scale(expected_cf.get(t)) if t in expected_cf else None,
            )
            for t in CULTURAL_FIT_TRAITS
        ]
        return cls(per_skill=per_skill, per_trait=per_trait)

    @classmethod
    def from_llm_payload(cls, payload: Mapping[str, Any]) -> "MatchInputs":
        """Raises ``KeyError``/``ValueError`` when the payload lacks the per-item lists."""
        skills = payload.get("perSkillMatch", payload.get("per_skill_match"))
        traits = payload.get("perCulturalFitMatch", payload.get("per_cultural_fit_match"))
        if not isinstance(skills, list) or not isinstance(traits, list):
            raise KeyError("perSkillMatch and perCulturalFitMatch must be lists")
        per_skill = [SkillMatch.model_validate(s) for s in skills]
        per_trait = [TraitMatch.model_validate(t) for t in traits]
        # reported percentages are recomputed, never trusted
        known = {
            "perSkillMatch", "per_skill_match", "perCulturalFitMatch", "per_cultural_fit_match",
            "percentageSkillMatch", "percentageCulturalFitMatch", "percentageMatchScore",
            "percentage_skill_match", "percentage_cultural_fit_match", "percentage_match_score",
            "strategy",
        }
        extra = {k: v for k, v in payload.items() if k not in known}
        return cls(per_skill=per_skill, per_trait=per_trait, extra=extra)


class ScoringStrategy(ABC):
    name = ""

    @abstractmethod
    def percentages(self, inputs: MatchInputs) -> tuple[float, float, float]:
        """Return (skill %, cultural-fit %, overall %)."""

    def report(self, inputs: MatchInputs) -> MatchReport:
        skill_pct, cultural_pct, overall = self.percentages(inputs)
        return MatchReport(
            percentage_skill_match=round(skill_pct, 2),
            percentage_cultural_fit_match=round(cultural_pct, 2),
            percentage_match_score=round(overall, 2),
            per_skill_match=inputs.per_skill,
            per_cultural_fit_match=inputs.per_trait,
            strategy=self.name,
            **inputs.extra,
        )


class LocalArithmeticStrategy(ScoringStrategy):
    name = "local"

    def __init__(self, skill_weight: float = 0.7, cultural_weight: float = 0.3):
        self.skill_weight = skill_weight
        self.cultural_weight = cultural_weight

    def percentages(self, inputs: MatchInputs) -> tuple[float, float, float]:
        expected = [
            {"name": s.skill, "score": s.expected_score, "years_experience": s.years_experience}
            for s in inputs.per_skill
        ]
        candidate = [
            {"name": s.skill, "score": s.candidate_score}
            for s in inputs.per_skill
            if s.candidate_score is not None
        ]
        expected_cf = {t.trait: t.expected_score for t in inputs.per_trait if t.expected_score is not None}
        candidate_cf = {t.trait: t.candidate_score for t in inputs.per_trait}

        skill_sim = skill_similarity(candidate, expected)
        cultural_sim = cultural_fit_similarity(candidate_cf, expected_cf)
        overall = weighted_match(skill_sim, cultural_sim, self.skill_weight, self.cultural_weight)
        return skill_sim * 100, cultural_sim * 100, overall * 100


class LlmReportStrategy(ScoringStrategy):
    name = "llm"

    def __init__(self, skill_weight: float = 0.6, cultural_weight: float = 0.4):
        self.skill_weight = skill_weight
        self.cultural_weight = cultural_weight

    def percentages(self, inputs: MatchInputs) -> tuple[float, float, float]:
        skill_pct = percentage_skill_match([s.candidate_score for s in inputs.per_skill])
        cultural_pct = percentage_cultural_fit_match(t.candidate_score for t in inputs.per_trait)
        overall = percentage_match_score(skill_pct, cultural_pct, self.skill_weight, self.cultural_weight)
        return skill_pct, cultural_pct, overall
