"""Unit tests for the model store."""

import numpy as np
import pytest

from attribute_bpr.bpr_linear import BPRLinearRecommender
from attribute_bpr.interaction_matrix import InteractionIndex
from attribute_bpr.item_attributes import ItemAttributes
from attribute_bpr.model_store import (
    get_model_path,
    list_saved_models,
    load_mappings,
    load_model,
    save_mappings,
    save_model,
)


def create_trained_model():
    interactions = InteractionIndex.from_pairs([(0, 0), (1, 1)])
    item_attributes = ItemAttributes.from_dict({0: {0}, 1: {1}})
    return BPRLinearRecommender(num_iter=2, random_state=0).fit(interactions, item_attributes)


class TestModelStore:
    """Test artifact naming and I/O."""

    def test_model_path(self, tmp_path):
        """Test artifact names derive from the logical name."""
        assert get_model_path('bpr_linear', str(tmp_path)).endswith('bpr_linear.model')

    def test_save_and_load_model(self, tmp_path):
        """Test a model round-trips through the store."""
        model = create_trained_model()

        save_model(model, 'bpr_linear', str(tmp_path))
        loaded = load_model(BPRLinearRecommender, 'bpr_linear', str(tmp_path), reg=0.5)

        np.testing.assert_array_equal(loaded.weights.values, model.weights.values)
        assert loaded.reg == 0.5

    def test_load_missing_model(self, tmp_path):
        """Test a missing artifact raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_model(BPRLinearRecommender, 'nothing', str(tmp_path))

    def test_mappings_round_trip(self, tmp_path):
        """Test ID mappings are restored unchanged."""
        mappings = {'users': [3, 7], 'items': [100, 200], 'attributes': [4]}

        save_mappings(mappings, 'bpr_linear', str(tmp_path))

        assert load_mappings('bpr_linear', str(tmp_path)) == mappings

    def test_load_missing_mappings(self, tmp_path):
        """Test missing mappings raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_mappings('nothing', str(tmp_path))

    def test_list_saved_models(self, tmp_path):
        """Test only model files are listed."""
        model = create_trained_model()
        save_model(model, 'b', str(tmp_path))
        save_model(model, 'a', str(tmp_path))
        save_mappings({}, 'a', str(tmp_path))

        assert list_saved_models(str(tmp_path)) == ['a', 'b']
        assert list_saved_models(str(tmp_path / 'missing')) == []
