"""End-to-end tests for the training and inference scripts."""

import os

import pytest

from scripts.run_inference import get_recommendations, load_recommender, score_items
from attribute_bpr.bpr_linear import BPRLinearRecommender
from attribute_bpr.interaction_matrix import InteractionIndex
from attribute_bpr.item_attributes import ItemAttributes
from scripts.train_bpr_linear import _EpochProgress, build_parser, train


@pytest.fixture
def data_files(tmp_path):
    """Raw IDs: users 10/20/30, items 100..103, attributes 1 (A) and 2 (B)."""
    ratings = tmp_path / "ratings.txt"
    ratings.write_text(
        "10 100 5\n"
        "10 102 4\n"
        "20 101 5\n"
        "30 102 3\n"
    )
    attributes = tmp_path / "item_attributes.txt"
    attributes.write_text(
        "100 1\n"
        "101 2\n"
        "102 1\n"
        "102 2\n"
    )
    return str(ratings), str(attributes)


class TestTrainingScript:
    """Test the training and inference entry points."""

    def test_train_writes_artifacts(self, data_files, tmp_path):
        """Test training saves a model and its mappings."""
        ratings, attributes = data_files
        models_dir = str(tmp_path / "models")

        model = train(ratings, attributes, model_options={'num_iter': 5, 'random_state': 0},
                      models_dir=models_dir)

        assert model.state == 'trained'
        assert os.path.exists(os.path.join(models_dir, 'bpr_linear.model'))
        assert os.path.exists(os.path.join(models_dir, 'bpr_linear.mappings'))

    def test_inference_uses_raw_ids(self, data_files, tmp_path):
        """Test a saved model scores and recommends by raw IDs."""
        ratings, attributes = data_files
        models_dir = str(tmp_path / "models")
        trained = train(ratings, attributes, model_options={'num_iter': 30, 'random_state': 0},
                        models_dir=models_dir)

        model, builder = load_recommender('bpr_linear', attributes, models_dir)
        scores = score_items(model, builder, 10, [100, 101, 555])
        recs = get_recommendations(model, builder, 10, user_history=[100, 102], top_n=5)

        assert scores[100] == trained.predict(builder.user_map[10], builder.item_map[100])
        assert scores[100] > scores[101]
        assert scores[555] == 0.0
        assert recs == [101]
        assert get_recommendations(model, builder, 99) == []

    def test_parser_defaults(self):
        """Test the CLI parser accepts option strings."""
        args = build_parser().parse_args(['--options', 'reg=0.1', '--seed', '3'])

        assert args.options == 'reg=0.1'
        assert args.seed == 3
        assert args.log_level == 'INFO'

    def test_missing_model_lists_available(self, data_files, tmp_path):
        """Test loading an unknown model name reports the saved models."""
        ratings, attributes = data_files
        models_dir = str(tmp_path / "models")
        train(ratings, attributes, model_options={'num_iter': 1, 'random_state': 0},
              models_dir=models_dir)

        with pytest.raises(FileNotFoundError, match="Available models: bpr_linear"):
            load_recommender('other', attributes, models_dir)


class TestEpochProgress:
    """Test the tqdm progress callback."""

    def test_repeated_final_call_is_ignored(self):
        """Test a second end-of-epoch call after the bar closed does nothing."""
        progress = _EpochProgress()

        progress(1, 4, 8)
        progress(1, 8, 8)
        progress(1, 8, 8)

        assert progress.bar is None
        assert progress.epoch == 1

    def test_fit_with_interval_dividing_epoch(self):
        """Test training drives the bar when the interval divides the epoch budget."""
        interactions = InteractionIndex.from_pairs(
            [(0, 0), (0, 2), (1, 1), (2, 2)], num_users=3, num_items=4
        )
        item_attributes = ItemAttributes.from_dict({0: {0}, 1: {1}, 2: {0, 1}, 3: set()})
        progress = _EpochProgress()
        model = BPRLinearRecommender(
            num_iter=2,
            iteration_length=5,
            random_state=0,
            progress_callback=progress,
            progress_interval=10,
        )

        model.fit(interactions, item_attributes)

        assert model.state == 'trained'
        assert progress.bar is None
        assert progress.epoch == 2
