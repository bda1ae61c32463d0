"""Unit tests for triple sampling."""

import numpy as np
import pytest

from attribute_bpr.interaction_matrix import InteractionIndex
from attribute_bpr.sampler import FastSamplingIndex, TripleSampler, support_data_size


def create_interactions():
    """4 items; user 2 has no data, user 3 interacted with every item."""
    pairs = [
        (0, 0), (0, 1),
        (1, 2),
        (3, 0), (3, 1), (3, 2), (3, 3),
    ]
    return InteractionIndex.from_pairs(pairs, num_users=4, num_items=4)


def create_interactions_with_unknown_item():
    """5 items; item 4 has no interactions, user 2 has every other item."""
    pairs = [
        (0, 0),
        (1, 1), (1, 2),
        (2, 0), (2, 1), (2, 2), (2, 3),
    ]
    return InteractionIndex.from_pairs(pairs, num_users=3, num_items=5)


def valid_triples(interactions):
    """Enumerate every valid (u, i, j)."""
    known = {j for j in range(interactions.num_items) if interactions.item_counts[j] > 0}
    triples = set()
    for u in range(interactions.num_users):
        items = interactions.user_items(u)
        for i in items:
            for j in known - items:
                triples.add((u, i, j))
    return triples


def fast_sampler(interactions, seed=0):
    return TripleSampler(interactions, np.random.default_rng(seed), fast_sampling_memory_limit=1024)


def direct_sampler(interactions, seed=0):
    return TripleSampler(interactions, np.random.default_rng(seed), fast_sampling_memory_limit=None)


class TestSupportDataSize:
    """Test the fast sampling memory estimate."""

    def test_small_data_rounds_down_to_zero(self):
        """Test that small data needs less than one MiB."""
        assert support_data_size(10, 10) == 0

    def test_size_in_mib(self):
        """Test 1024 x 1024 x 4 bytes is 4 MiB."""
        assert support_data_size(1024, 1024) == 4

    def test_memory_limit_selects_strategy(self):
        """Test that a limit below the estimate falls back to direct sampling."""
        interactions = InteractionIndex.from_pairs([(0, 0), (1, 1)], num_users=1024, num_items=1024)

        assert TripleSampler(interactions, np.random.default_rng(0), 4).fast_sampling
        assert not TripleSampler(interactions, np.random.default_rng(0), 3).fast_sampling


class TestFastSamplingIndex:
    """Test the precomputed per-user arrays."""

    def test_positive_and_negative_items(self):
        """Test positives are the user's items and negatives the rest of the known items."""
        index = FastSamplingIndex.build(create_interactions_with_unknown_item())

        assert list(index.user_pos_items[0]) == [0]
        assert list(index.user_neg_items[0]) == [1, 2, 3]
        assert list(index.user_pos_items[1]) == [1, 2]
        assert list(index.user_neg_items[1]) == [0, 3]

    def test_unknown_items_are_not_negatives(self):
        """Test that items without interactions never appear in a negative array."""
        index = FastSamplingIndex.build(create_interactions_with_unknown_item())

        for neg in index.user_neg_items:
            assert 4 not in neg

    def test_last_item_is_included(self):
        """Test that the highest item ID can be a negative."""
        index = FastSamplingIndex.build(create_interactions())

        assert 3 in index.user_neg_items[0]


class TestSampleUser:
    """Test user selection."""

    def test_sampleable_users_exhaustive(self):
        """Test eligibility of every user on a small dataset."""
        sampler = direct_sampler(create_interactions())

        eligible = [u for u in range(4) if sampler.is_sampleable_user(u)]
        assert eligible == [0, 1]

    def test_excluded_users_never_sampled(self):
        """Test users with zero or all interactions are never returned."""
        sampler = direct_sampler(create_interactions(), seed=3)

        users = {sampler.sample_user() for _ in range(500)}
        assert users == {0, 1}

    def test_user_without_valid_negative_never_sampled(self):
        """Test a user covering every known item is skipped."""
        sampler = direct_sampler(create_interactions_with_unknown_item(), seed=5)

        assert not sampler.is_sampleable_user(2)
        assert 2 not in {sampler.sample_user() for _ in range(500)}

    def test_no_sampleable_user_raises(self):
        """Test that data without any valid triple is rejected."""
        interactions = InteractionIndex.from_pairs([(0, 0), (0, 1), (1, 0), (1, 1)])

        with pytest.raises(ValueError, match="cannot sample triples"):
            direct_sampler(interactions)


class TestSampleTriple:
    """Test the validity and reach of sampled triples."""

    @pytest.mark.parametrize("make_sampler", [fast_sampler, direct_sampler])
    def test_triples_are_valid(self, make_sampler):
        """Test every sampled triple satisfies the positive/negative rules."""
        interactions = create_interactions_with_unknown_item()
        sampler = make_sampler(interactions, seed=11)

        for _ in range(1000):
            u, i, j = sampler.sample_triple()
            assert interactions.contains(u, i)
            assert not interactions.contains(u, j)
            assert interactions.item_counts[j] >= 1

    def test_strategies_reach_same_triples(self):
        """Test fast and direct sampling reach exactly the valid triples."""
        interactions = create_interactions()
        expected = valid_triples(interactions)

        fast = fast_sampler(interactions, seed=1)
        direct = direct_sampler(interactions, seed=2)
        assert fast.fast_sampling
        assert not direct.fast_sampling

        fast_triples = {fast.sample_triple() for _ in range(3000)}
        direct_triples = {direct.sample_triple() for _ in range(3000)}

        assert len(expected) == 7
        assert fast_triples == expected
        assert direct_triples == expected

    def test_same_seed_same_triples(self):
        """Test sampling is reproducible with a seeded generator."""
        interactions = create_interactions()

        s1 = fast_sampler(interactions, seed=7)
        s2 = fast_sampler(interactions, seed=7)

        assert [s1.sample_triple() for _ in range(20)] == [s2.sample_triple() for _ in range(20)]
