"""
Test cases for the match-score arithmetic
"""
import random

import pytest

from talentmatch.matching.scoring import (
    CULTURAL_FIT_TRAITS,
    LlmReportStrategy,
    LocalArithmeticStrategy,
    MatchInputs,
    cultural_fit_similarity,
    percentage_cultural_fit_match,
    percentage_match_score,
    percentage_skill_match,
    skill_similarity,
    weighted_match,
)


class TestSkillSimilarity:
    """Weighted skill overlap"""

    def test_single_matched_skill(self):
        """go: expected 5 over 3 years, candidate 3 -> min(3, 5) / 5"""
        expected = [{"name": "go", "score": 5, "years_experience": 3}]
        candidate = [{"name": "go", "score": 3}]
        assert skill_similarity(candidate, expected) == pytest.approx(0.6)

    def test_missing_skill_adds_penalty_weight_only(self):
        """A missing weight-1 skill adds 0 to the numerator and 1 to the denominator"""
        expected = [
            {"name": "go", "score": 5, "years_experience": 3},
            {"name": "rust", "score": 5, "years_experience": 1},
        ]
        candidate = [{"name": "go", "score": 3}]
        base = skill_similarity(candidate, expected[:1])
        with_missing = skill_similarity(candidate, expected)
        # (0.6 * 3) / (3 + 1)
        assert with_missing == pytest.approx(1.8 / 4)
        assert with_missing < base

    def test_names_match_case_insensitively(self):
        expected = [{"name": "Python", "score": 4, "years_experience": 2}]
        candidate = [{"name": " python ", "score": 4}]
        assert skill_similarity(candidate, expected) == pytest.approx(0.8)

    def test_candidate_above_expected_is_capped(self):
        expected = [{"name": "sql", "score": 2, "years_experience": 1}]
        candidate = [{"name": "sql", "score": 5}]
        assert skill_similarity(candidate, expected) == pytest.approx(0.4)

    def test_no_expected_skills_is_zero(self):
        assert skill_similarity([{"name": "go", "score": 5}], []) == 0.0
        assert skill_similarity([], None) == 0.0

    def test_accepts_orm_like_objects(self):
        class Skill:
            def __init__(self, name, score):
                self.name, self.score = name, score

        expected = [{"name": "go", "score": 5, "years_experience": 1}]
        assert skill_similarity([Skill("go", 5)], expected) == pytest.approx(1.0)


class TestCulturalFitSimilarity:
    """Per-trait distance averaged over the eight traits"""

    def test_all_fives_against_all_threes(self):
        candidate = {t: 5 for t in CULTURAL_FIT_TRAITS}
        expected = {t: 3 for t in CULTURAL_FIT_TRAITS}
        assert cultural_fit_similarity(candidate, expected) == pytest.approx(0.6)

    def test_identical_profiles(self):
        traits = {t: 2.5 for t in CULTURAL_FIT_TRAITS}
        assert cultural_fit_similarity(traits, dict(traits)) == pytest.approx(1.0)

    def test_missing_profile_is_zero(self):
        assert cultural_fit_similarity(None, {t: 3 for t in CULTURAL_FIT_TRAITS}) == 0.0
        assert cultural_fit_similarity({t: 3 for t in CULTURAL_FIT_TRAITS}, {}) == 0.0


class TestWeightedMatch:
    def test_default_weights(self):
        assert weighted_match(1.0, 0.0) == pytest.approx(0.7)

    def test_weights_need_not_sum_to_one(self):
        assert weighted_match(0.5, 1.0, 2, 2) == pytest.approx(0.75)

    def test_zero_weights(self):
        assert weighted_match(0.9, 0.9, 0, 0) == 0.0


class TestLlmPercentages:
    def test_skill_percentage_treats_missing_as_zero(self):
        assert percentage_skill_match([5, None, 2.5, 2.5]) == pytest.approx(50.0)

    def test_skill_percentage_of_nothing(self):
        assert percentage_skill_match([]) == 0.0

    def test_cultural_percentage(self):
        assert percentage_cultural_fit_match([4] * 8) == pytest.approx(80.0)

    def test_overall_weights(self):
        assert percentage_match_score(50.0, 100.0) == pytest.approx(70.0)


class TestBounds:
    """Scores stay in range for arbitrary (even out-of-range) inputs"""

    def test_random_profiles(self):
        rng = random.Random(7)
        for _ in range(300):
            names = [f"s{i}" for i in range(rng.randint(0, 6))]
            expected = [
                {"name": n, "score": rng.uniform(-2, 8), "years_experience": rng.uniform(-1, 10)}
                for n in names
            ]
            candidate = [
                {"name": n, "score": rng.uniform(-2, 8)} for n in names if rng.random() < 0.7
            ]
            c_traits = {t: rng.uniform(-3, 9) for t in CULTURAL_FIT_TRAITS}
            e_traits = {t: rng.uniform(-3, 9) for t in CULTURAL_FIT_TRAITS}

            s = skill_similarity(candidate, expected)
            c = cultural_fit_similarity(c_traits, e_traits)
            assert 0.0 <= s <= 1.0
            assert 0.0 <= c <= 1.0
            assert 0.0 <= weighted_match(s, c) <= 1.0

            scores = [rng.choice([None, rng.uniform(-5, 10)]) for _ in names]
            skill_pct = percentage_skill_match(scores)
            cultural_pct = percentage_cultural_fit_match(rng.uniform(-5, 10) for _ in CULTURAL_FIT_TRAITS)
            assert 0.0 <= percentage_match_score(skill_pct, cultural_pct) <= 100.0


class TestStrategies:
    """Both schemes produce the same report shape"""

    def _payload(self):
        return {
            "perSkillMatch": [
                {"skill": "python", "candidateScore": 5},
                {"skill": "sql", "candidateScore": None},
            ],
            "perCulturalFitMatch": [{"trait": t, "candidateScore": 4} for t in CULTURAL_FIT_TRAITS],
            "percentageMatchScore": 999,
            "summary": "strong backend profile",
        }

    def test_llm_strategy_recomputes_reported_percentages(self):
        report = LlmReportStrategy().report(MatchInputs.from_llm_payload(self._payload()))
        assert report.percentage_skill_match == pytest.approx(50.0)
        assert report.percentage_cultural_fit_match == pytest.approx(80.0)
        assert report.percentage_match_score == pytest.approx(62.0)
        data = report.to_data()
        assert data["perSkillMatch"][1] == {
            "skill": "sql", "candidateScore": None, "expectedScore": None,
            "yearsExperience": None, "mandatory": False,
        }
        assert data["summary"] == "strong backend profile"
        assert data["strategy"] == "llm"

    def test_llm_payload_without_lists_is_rejected(self):
        with pytest.raises(KeyError):
            MatchInputs.from_llm_payload({"percentageMatchScore": 80})

    def test_local_strategy_uses_profiles(self):
        inputs = MatchInputs.from_profiles(
            expected_skills=[{"name": "go", "score": 5, "years_experience": 3}],
            expected_cultural_fit={t: 3 for t in CULTURAL_FIT_TRAITS},
            candidate_skills=[{"name": "go", "score": 3}],
            candidate_traits={t: 5 for t in CULTURAL_FIT_TRAITS},
        )
        report = LocalArithmeticStrategy().report(inputs)
        assert report.percentage_skill_match == pytest.approx(60.0)
        assert report.percentage_cultural_fit_match == pytest.approx(60.0)
        assert report.percentage_match_score == pytest.approx(60.0)
        assert report.strategy == "local"

    def test_local_strategy_custom_weights(self):
        inputs = MatchInputs.from_profiles(
            expected_skills=[{"name": "go", "score": 5, "years_experience": 1}],
            expected_cultural_fit={t: 0 for t in CULTURAL_FIT_TRAITS},
            candidate_skills=[{"name": "go", "score": 5}],
            candidate_traits={t: 5 for t in CULTURAL_FIT_TRAITS},
        )
        report = LocalArithmeticStrategy(skill_weight=1, cultural_weight=0).report(inputs)
        assert report.percentage_match_score == pytest.approx(100.0)
