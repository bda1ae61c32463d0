"""Sampling of (user, positive item, negative item) triples for BPR training.

A valid triple (u, i, j) has i in the items of u, j not in the items of u,
and j interacted with by at least one user. Items nobody interacted with are
never negatives: they are unknown rather than disliked.

Two strategies produce the same population of triples:

* fast sampling draws i and j by index from per-user arrays built once up
  front (FastSamplingIndex), at a memory cost of roughly
  n_users * n_items * 4 bytes;
* direct sampling draws j uniformly from all items and redraws until it is
  a valid negative.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def support_data_size(num_users, num_items):
    """Memory estimate of the fast sampling index, in whole MiB."""
    return (num_users * num_items * 4) // (1024 * 1024)


class FastSamplingIndex:
    """Per-user arrays of positive and negative item IDs."""

    def __init__(self, user_pos_items, user_neg_items):
        self.user_pos_items = user_pos_items
        self.user_neg_items = user_neg_items

    @classmethod
    def build(cls, interactions):
        known_items = np.flatnonzero(interactions.item_counts > 0)

        user_pos_items = []
        user_neg_items = []
        for u in range(interactions.num_users):
            pos = np.array(interactions.user_item_array(u), dtype=np.int64)
            user_pos_items.append(pos)
            user_neg_items.append(np.setdiff1d(known_items, pos, assume_unique=True))
        return cls(user_pos_items, user_neg_items)


class TripleSampler:
    """Draws training triples from an InteractionIndex.

    Users are drawn uniformly from all user IDs and rejected until they have
    at least one interaction and at least one valid negative item. Active
    users are not favoured per draw.

    Args:
        interactions:               InteractionIndex with the training data.
        rng:                        numpy Generator used for every draw.
        fast_sampling_memory_limit: MiB ceiling for building the fast index.
                                    None or a negative value disables it.
    """

    def __init__(self, interactions, rng, fast_sampling_memory_limit=1024):
        self.interactions = interactions
        self.rng = rng
        self.num_users = interactions.num_users
        self.num_items = interactions.num_items
        self.num_known_items = int(np.count_nonzero(interactions.item_counts))

        self._user_counts = interactions.user_counts
        self._item_counts = interactions.item_counts

        if not any(self.is_sampleable_user(u) for u in range(self.num_users)):
            raise ValueError(
                "No user has both a positive and a negative item; cannot sample triples."
            )

        self.fast_sampling = False
        self.fast_index = None
        if fast_sampling_memory_limit is not None and fast_sampling_memory_limit >= 0:
            size = support_data_size(self.num_users, self.num_items)
            logger.debug("fast sampling support data size: %d MiB", size)
            if size <= fast_sampling_memory_limit:
                self.fast_index = FastSamplingIndex.build(interactions)
                self.fast_sampling = True

    def is_sampleable_user(self, user):
        count = self._user_counts[user]
        # a user covering every known item has no valid negative, even if
        # some items without interactions are left
        return 0 < count < self.num_items and count < self.num_known_items

    def sample_user(self):
        while True:
            u = int(self.rng.integers(0, self.num_users))
            if self.is_sampleable_user(u):
                return u

    def sample_item_pair(self, user):
        """Draw a positive item i and a negative item j for a user."""
        rng = self.rng

        if self.fast_sampling:
            pos = self.fast_index.user_pos_items[user]
            neg = self.fast_index.user_neg_items[user]
            i = int(pos[rng.integers(0, len(pos))])
            j = int(neg[rng.integers(0, len(neg))])
            return i, j

        user_items = self.interactions.user_item_array(user)
        i = int(user_items[rng.integers(0, len(user_items))])
        while True:
            j = int(rng.integers(0, self.num_items))
            if self._item_counts[j] == 0 or self.interactions.contains(user, j):
                continue
            return i, j

    def sample_triple(self):
        u = self.sample_user()
        i, j = self.sample_item_pair(u)
        return u, i, j
