"""
Tests for Agreement Scoring
===========================
"""

import pytest

from multimodel.llm.agreement import agreement_score, jaccard_similarity, significant_words


class TestSignificantWords:

    def test_short_words_dropped(self):
        assert significant_words("The cat sat on a warm blue mat") == {"warm", "blue"}

    def test_lowercased_and_whitespace_split(self):
        assert significant_words("Alpha\tBETA\n gamma") == {"alpha", "beta", "gamma"}

    def test_punctuation_kept(self):
        assert significant_words("alpha, alpha") == {"alpha,", "alpha"}


class TestJaccard:

    def test_partial_overlap(self):
        a = frozenset({"alpha", "beta", "gamma"})
        b = frozenset({"alpha", "beta", "delta"})
        assert jaccard_similarity(a, b) == pytest.approx(0.5)

    def test_disjoint(self):
        assert jaccard_similarity(frozenset({"alpha"}), frozenset({"beta"})) == 0.0

    def test_both_empty(self):
        assert jaccard_similarity(frozenset(), frozenset()) == 1.0

    def test_one_empty(self):
        assert jaccard_similarity(frozenset(), frozenset({"alpha"})) == 0.0


class TestAgreementScore:

    def test_single_output(self):
        assert agreement_score(["anything at all"]) == 1.0

    def test_no_outputs(self):
        assert agreement_score([]) == 1.0

    def test_identical_outputs(self):
        assert agreement_score(["same words here", "same words here"]) == 1.0

    def test_disjoint_outputs(self):
        assert agreement_score(["alpha bravo", "charlie delta"]) == 0.0

    def test_two_of_three_words_shared(self):
        score = agreement_score(["alpha beta gamma", "alpha beta delta"])
        assert score == pytest.approx(0.5)

    def test_mean_over_pairs(self):
        # pairs: (a,b)=1.0, (a,c)=0.0, (b,c)=0.0
        score = agreement_score(["alpha bravo", "alpha bravo", "charlie delta"])
        assert score == pytest.approx(1 / 3)

    def test_in_unit_interval(self):
        score = agreement_score(["Modern minimal layout", "Minimal modern grid layout", "Bold colors"])
        assert 0.0 <= score <= 1.0
