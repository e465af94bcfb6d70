"""
Unit tests for the fuzzy match index.

Tests cover:
- token_distance: containment, typos, bound pruning
- FuzzyIndex.search: field matches, phrase containment, typo tolerance
- Ranking by weighted score with title first
- Short tokens, empty collections and threshold validation
- Long queries: tolerated misses and pruning of unrelated vocabulary

Version: 1.0.0
"""
from difflib import SequenceMatcher
from unittest.mock import patch

import pytest

from catalog_search.utils.fuzzy_match import FuzzyIndex, field_text, token_distance


@pytest.mark.unit
class TestTokenDistance:

    def test_containment_is_zero(self):
        assert token_distance("app", "apple") == 0.0
        assert token_distance("apple", "apple") == 0.0

    def test_typo_is_small(self):
        assert token_distance("samsng", "samsung") == pytest.approx(1 - 12 / 13)

    def test_beyond_bound_reports_one(self):
        assert token_distance("abc", "xyz", bound=0.3) == 1.0

    def test_unrelated_tokens_are_far(self):
        assert token_distance("laptop", "camera") > 0.3


@pytest.mark.unit
class TestFuzzyIndex:

    @pytest.fixture
    def index(self, sample_products):
        return FuzzyIndex(sample_products)

    def positions(self, index, query):
        return [match.position for match in index.search(query)]

    def test_len(self, index):
        assert len(index) == 4

    def test_vendor_match(self, index):
        assert sorted(self.positions(index, "Apple")) == [0, 2]

    def test_phrase_in_description(self, index):
        assert self.positions(index, "camera system") == [0]

    def test_product_type_match(self, index):
        assert sorted(self.positions(index, "Smartphone")) == [0, 1]

    def test_single_match(self, index):
        assert self.positions(index, "laptop") == [2]

    def test_typo_tolerance(self, index):
        assert self.positions(index, "Samsng") == [1]

    def test_title_match_ranks_first(self, index):
        assert self.positions(index, "iPhone")[0] == 0

    def test_prefix_matches_by_containment(self, index):
        assert self.positions(index, "iPho")[0] == 0

    def test_no_match(self, index):
        assert index.search("refrigerator") == []

    def test_short_tokens_are_ignored(self, index):
        assert index.search("a") == []
        assert index.search("   ") == []

    def test_scores_are_ordered(self, index):
        scores = [match.score for match in index.search("apple")]
        assert scores == sorted(scores)

    def test_empty_collection(self):
        assert FuzzyIndex([]).search("anything") == []

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ValueError):
            FuzzyIndex([], threshold=threshold)

    def test_zero_threshold_needs_containment(self, sample_products):
        index = FuzzyIndex(sample_products, threshold=0.0)
        assert index.search("Samsng") == []
        assert [m.position for m in index.search("Samsung")] == [1]

    def test_field_text_joins_tags(self, sample_products):
        assert field_text(sample_products[0], "tags") == "electronics phone apple"
        assert field_text(sample_products[0], "vendor") == "Apple"


@pytest.mark.unit
class TestLongQueries:

    def test_one_miss_within_threshold_still_matches(self, sample_products):
        index = FuzzyIndex(sample_products)
        assert [m.position for m in index.search("latest camera system xyzw")] == [0]

    def test_two_misses_do_not_match(self, sample_products):
        index = FuzzyIndex(sample_products)
        assert index.search("latest camera xyzw qvjk") == []

    def test_unrelated_vocabulary_skips_full_comparison(self, product_factory):
        records = [
            product_factory(id=str(i), title=f"Item {i:05d}", description="", vendor="", product_type="")
            for i in range(200)
        ]
        index = FuzzyIndex(records)
        ratio = SequenceMatcher.ratio

        with patch.object(SequenceMatcher, "ratio", autospec=True, side_effect=ratio) as full_ratio:
            assert index.search("wireless charger fast usb") == []

        assert full_ratio.call_count == 0
