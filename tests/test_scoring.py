"""Unit tests for the exponential score curve."""

import math

import pytest

from geoquiz.domain.scoring import MAX_SCORE, Scorer, calculate_score


class TestScoreCurve:
    def test_perfect_guess(self):
        assert calculate_score(0, 100) == MAX_SCORE

    def test_one_scale_factor_is_about_37(self):
        assert calculate_score(100, 100) == 37

    def test_negative_distance_counts_as_zero(self):
        assert calculate_score(-5, 100) == MAX_SCORE

    def test_far_guess_scores_zero(self):
        assert calculate_score(10_000, 100) == 0

    def test_monotonic_non_increasing(self):
        scores = [calculate_score(d, 60) for d in range(0, 600, 5)]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("distance", [0, 0.5, 12.3, 99.9, 250, 1e6])
    def test_bounded(self, distance):
        assert 0 <= calculate_score(distance, 3000) <= MAX_SCORE

    def test_matches_formula(self):
        assert calculate_score(42, 60) == math.floor(100 * math.exp(-42 / 60) + 0.5)

    def test_half_point_rounds_up(self, monkeypatch):
        monkeypatch.setattr("geoquiz.domain.scoring.math.exp", lambda x: 0.125)
        assert calculate_score(1, 1) == 13


class TestScorer:
    def test_switzerland_scale(self, registry):
        scorer = Scorer(registry)
        assert scorer.compute_score(100, "country:switzerland") == 37

    def test_slovenia_uses_its_own_scale(self, registry):
        scorer = Scorer(registry)
        assert scorer.compute_score(60, "country:slovenia") == 37

    def test_unknown_type_falls_back_to_default(self, registry):
        scorer = Scorer(registry)
        assert scorer.compute_score(100, "country:atlantis") == 37
        assert scorer.compute_score(100, None) == 37

    def test_image_scale_in_kilometres(self, registry):
        scorer = Scorer(registry)
        # 10 m on a 35 m scale
        assert scorer.compute_score(0.01, "image:garten") == 75

    @pytest.mark.parametrize(
        "game_type,penalty,score",
        [
            ("country:switzerland", 400, 2),
            ("country:slovenia", 250, 2),
            ("world:capitals", 5000, 19),
            ("image:garten", 0.350, 0),
        ],
    )
    def test_timeout_penalty(self, registry, game_type, penalty, score):
        scorer = Scorer(registry)
        assert scorer.timeout_distance(game_type) == penalty
        assert scorer.compute_score(scorer.timeout_distance(game_type), game_type) == score
