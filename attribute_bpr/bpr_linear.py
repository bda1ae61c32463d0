# Linear attribute model optimized for BPR (BPR-Linear)
#
# Each user gets one weight per item attribute. An item's score for a user is
# the sum of the user's weights over the item's (binary) attributes. Training
# samples (user, positive item, negative item) triples and does stochastic
# gradient ascent on the BPR log-likelihood, pushing the positive item's score
# above the negative item's score.
#
# Attributes shared by both items cancel out in the score difference, so
# only the symmetric difference of the two attribute sets is updated per step.
#
# The model does not support online updates: retraining starts from freshly
# sampled weights.
#
# Reference: Rendle et al., "BPR: Bayesian Personalized Ranking from Implicit Feedback" (2009)

import logging

import numpy as np
from scipy.sparse import issparse
from scipy.special import expit

from attribute_bpr.config import BPR_LINEAR_DEFAULTS
from attribute_bpr.interaction_matrix import InteractionIndex
from attribute_bpr.item_attributes import ItemAttributes
from attribute_bpr.sampler import TripleSampler
from attribute_bpr.weight_matrix import WeightMatrix

logger = logging.getLogger(__name__)

UNINITIALIZED = 'uninitialized'
INITIALIZED = 'initialized'
TRAINING = 'training'
TRAINED = 'trained'


class BPRLinearRecommender:
    def __init__(
        self,
        reg=BPR_LINEAR_DEFAULTS['reg'],
        learn_rate=BPR_LINEAR_DEFAULTS['learn_rate'],
        num_iter=BPR_LINEAR_DEFAULTS['num_iter'],
        iteration_length=BPR_LINEAR_DEFAULTS['iteration_length'],
        init_f_mean=BPR_LINEAR_DEFAULTS['init_f_mean'],
        init_f_stdev=BPR_LINEAR_DEFAULTS['init_f_stdev'],
        fast_sampling_memory_limit=BPR_LINEAR_DEFAULTS['fast_sampling_memory_limit'],
        random_state=None,
        rng=None,
        progress_callback=None,
        progress_interval=1000000,
    ):
        """
        Initializes the BPR-Linear recommender.

        Args:
            reg:                        L2 regularization applied in every weight update.
            learn_rate:                 Step size of the gradient ascent.
            num_iter:                   Number of epochs run by fit().
            iteration_length:           One epoch is iteration_length * number of
                                        positive interactions sampled updates.
            init_f_mean:                Mean of the normal distribution for the initial weights.
            init_f_stdev:               Standard deviation of that distribution.
            fast_sampling_memory_limit: Memory ceiling in MiB for the precomputed
                                        per-user sampling arrays.
            random_state:               Seed for a new numpy Generator, used when rng is None.
            rng:                        numpy Generator for all random draws.
            progress_callback:          Optional callable(epoch, done, total), invoked every
                                        progress_interval samples and at the end of each epoch.
            progress_interval:          Number of samples between progress callbacks.
        """
        self.reg = reg
        self.learn_rate = learn_rate
        self.num_iter = num_iter
        self.iteration_length = iteration_length
        self.init_f_mean = init_f_mean
        self.init_f_stdev = init_f_stdev
        self.fast_sampling_memory_limit = fast_sampling_memory_limit
        self.rng = rng if rng is not None else np.random.default_rng(random_state)
        self.progress_callback = progress_callback
        self.progress_interval = progress_interval

        # These are populated by fit() / load()
        self.interactions = None
        self.item_attributes = None
        self.weights = None
        self.sampler = None
        self.current_epoch = 0
        self.state = UNINITIALIZED

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def set_interactions(self, interactions):
        """Set the training data: an InteractionIndex or a (n_users, n_items) sparse matrix."""
        if not isinstance(interactions, InteractionIndex):
            interactions = InteractionIndex(interactions)
        self.interactions = interactions

    def set_item_attributes(self, item_attributes):
        """Set the item attributes: an ItemAttributes or a (n_items, n_attributes) sparse matrix."""
        if issparse(item_attributes):
            item_attributes = ItemAttributes(item_attributes)
        if self.weights is not None and item_attributes.num_attributes > self.weights.num_cols:
            raise ValueError(
                f"Item attributes use {item_attributes.num_attributes} attributes, "
                f"but the model only has weights for {self.weights.num_cols}."
            )
        self.item_attributes = item_attributes

    @property
    def num_item_attributes(self):
        if self.item_attributes is None:
            return 0
        return self.item_attributes.num_attributes

    @property
    def max_item_id(self):
        num_items = 0
        if self.interactions is not None:
            num_items = self.interactions.num_items
        if self.item_attributes is not None:
            num_items = max(num_items, self.item_attributes.num_items)
        return num_items - 1

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def init_model(self):
        """Sample fresh weights and choose the sampling strategy."""
        if self.interactions is None:
            raise ValueError("Interaction data must be set before training.")
        if self.item_attributes is None:
            raise ValueError("Item attributes must be set before training.")

        self.sampler = TripleSampler(
            self.interactions, self.rng, self.fast_sampling_memory_limit
        )
        logger.info(
            "Sampling strategy: %s", 'fast' if self.sampler.fast_sampling else 'direct'
        )

        self.weights = WeightMatrix(self.interactions.num_users, self.num_item_attributes)
        self.weights.init_normal(self.init_f_mean, self.init_f_stdev, self.rng)

        self.current_epoch = 0
        self.state = INITIALIZED

    def fit(self, interactions=None, item_attributes=None):
        """
        Trains the per-user attribute weights for num_iter epochs.

        Any previous model is discarded.

        Args:
            interactions:    Optional training data, see set_interactions().
            item_attributes: Optional item attributes, see set_item_attributes().

        Returns:
            self (for method chaining).
        """
        if interactions is not None:
            self.set_interactions(interactions)
        if item_attributes is not None:
            # attributes are validated against the new model, not the old one
            self.weights = None
            self.set_item_attributes(item_attributes)

        self.init_model()

        self.state = TRAINING
        for epoch in range(self.num_iter):
            self.iterate()
            logger.info("Epoch %d/%d done", epoch + 1, self.num_iter)
        self.state = TRAINED

        return self

    def iterate(self):
        """
        Perform one epoch of stochastic gradient ascent.

        An epoch is a budget of iteration_length * number of positive
        interactions single-triple updates, drawn with replacement.
        """
        if self.sampler is None:
            raise ValueError("Model is not initialized. Call .init_model() or .fit() first.")

        self.current_epoch += 1
        num_samples = self.interactions.num_entries * self.iteration_length
        callback = self.progress_callback

        for n in range(num_samples):
            u, i, j = self.sampler.sample_triple()
            self.update_features(u, i, j)

            if callback is not None and (n + 1) % self.progress_interval == 0:
                callback(self.current_epoch, n + 1, num_samples)

        if callback is not None and num_samples % self.progress_interval != 0:
            callback(self.current_epoch, num_samples, num_samples)

    def update_features(self, u, i, j):
        """Apply one BPR update for the triple (u, i, j), touching only the
        attributes that differ between i and j."""
        x_uij = self._score(u, i) - self._score(u, j)

        attr_i = self.item_attributes.get_attributes(i)
        attr_j = self.item_attributes.get_attributes(j)

        # sigmoid(-x_uij) == 1 / (1 + exp(x_uij)), without overflow
        gradient = float(expit(-x_uij))

        for a in attr_i - attr_j:
            w_uf = self.weights.get(u, a)
            uf_update = gradient - self.reg * w_uf
            self.weights.set(u, a, w_uf + self.learn_rate * uf_update)

        for a in attr_j - attr_i:
            w_uf = self.weights.get(u, a)
            uf_update = -gradient - self.reg * w_uf
            self.weights.set(u, a, w_uf + self.learn_rate * uf_update)

    def compute_fit(self):
        """Placeholder: no fit measure is implemented, always returns -1.0."""
        return -1.0

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _score(self, user, item):
        row = self.weights.row(user)
        result = 0.0
        for a in self.item_attributes.get_attributes(item):
            result += row[a]
        return float(result)

    def _check_ready(self):
        if self.weights is None:
            raise ValueError("Model is not trained. Call .fit() first.")
        if self.item_attributes is None:
            raise ValueError("Item attributes must be set before scoring.")

    def predict(self, user, item):
        """
        Score of an item for a user: the sum of the user's weights over the
        item's attributes.

        Unknown users and items get a logged warning and a score of 0.0.
        """
        self._check_ready()

        if user < 0 or user >= self.weights.num_rows:
            logger.warning("user is unknown: %s", user)
            return 0.0
        if item < 0 or item > self.max_item_id:
            logger.warning("item is unknown: %s", item)
            return 0.0

        return self._score(user, item)

    def predict_items(self, user, items):
        return np.array([self.predict(user, item) for item in items], dtype=np.float64)

    def recommend(self, user, top_n=10, exclude=None):
        """
        Generates top-N item recommendations for a user.

        Args:
            user:    Internal user ID.
            top_n:   Number of recommendations to return.
            exclude: Optional iterable of internal item IDs to leave out,
                     e.g. the items the user already interacted with.

        Returns:
            List of internal item IDs, ordered by predicted score.
        """
        self._check_ready()

        if user < 0 or user >= self.weights.num_rows:
            logger.warning("user is unknown: %s", user)
            return []

        # Step 1: Score every item with attributes in one sparse product;
        # items past the attribute matrix have no attributes and score 0
        attribute_matrix = self.item_attributes.matrix
        user_weights = self.weights.row(user)[:attribute_matrix.shape[1]]
        scores = np.zeros(self.max_item_id + 1, dtype=np.float64)
        scores[:attribute_matrix.shape[0]] = attribute_matrix @ user_weights

        # Step 2: Exclude the requested items
        if exclude is not None:
            exclude_indices = [i for i in exclude if 0 <= i <= self.max_item_id]
            scores[exclude_indices] = -np.inf

        # Step 3: Return the top-N highest scoring items
        ranked = np.argsort(-scores, kind='stable')
        ranked = ranked[np.isfinite(scores[ranked])]
        return [int(i) for i in ranked[:top_n]]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path):
        """Write the weight matrix to path in the plain-text model format."""
        if self.weights is None:
            raise ValueError("Model is not trained. Call .fit() first.")
        self.weights.save(path)

    @classmethod
    def load(cls, path, **kwargs):
        """
        Load a model saved with save().

        The weight matrix takes its shape from the file. Item attributes must
        be set with set_item_attributes() before scoring.
        """
        model = cls(**kwargs)
        model.weights = WeightMatrix.load(path)
        model.state = TRAINED
        return model

    def __str__(self):
        return (
            f"BPR-Linear reg={self.reg} num_iter={self.num_iter} learn_rate={self.learn_rate} "
            f"fast_sampling_memory_limit={self.fast_sampling_memory_limit} "
            f"init_f_mean={self.init_f_mean} init_f_stdev={self.init_f_stdev}"
        )
