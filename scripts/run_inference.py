"""Inference example: load the model once, serve recommendations per user.

Models are loaded from disk exactly once (at process startup), then
recommend() is called for each user request without retraining.

Usage:
    # First train the model (if not already done)
    python scripts/train_bpr_linear.py --data data/ratings.txt --item-attributes data/item_attributes.txt

    # Then run inference
    python scripts/run_inference.py --user 196 --top-n 5
    python scripts/run_inference.py --user 196 --item 242 --item 302
"""

import argparse
import logging
import os
import sys

_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_SCRIPT_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from attribute_bpr.bpr_linear import BPRLinearRecommender
from attribute_bpr.interaction_io import read_interactions, read_item_attributes
from attribute_bpr.interaction_matrix import InteractionMatrixBuilder
from attribute_bpr.model_store import list_saved_models, load_mappings, load_model

DEFAULT_ATTRIBUTES_PATH = os.path.join(_PROJECT_ROOT, 'data', 'item_attributes.txt')


def load_recommender(model_name, attributes_path, models_dir=None):
    """Load a saved model together with its ID mappings and item attributes.

    Returns:
        (model, builder) where builder translates raw IDs to internal IDs.

    Raises:
        FileNotFoundError: If the model is missing; the message lists the saved models.
    """
    try:
        model = load_model(BPRLinearRecommender, model_name, models_dir)
    except FileNotFoundError as err:
        available = list_saved_models(models_dir)
        raise FileNotFoundError(
            f"{err} Available models: {', '.join(available) if available else 'none'}."
        ) from err
    builder = InteractionMatrixBuilder.from_mappings(load_mappings(model_name, models_dir))
    model.set_item_attributes(builder.build_attributes(read_item_attributes(attributes_path)))
    return model, builder


def get_recommendations(model, builder, raw_user_id, user_history=(), top_n=10):
    """Recommend raw item IDs for a raw user ID, leaving out user_history."""
    user = builder.user_map.get(raw_user_id, -1)
    exclude = [builder.item_map[i] for i in user_history if i in builder.item_map]
    return [builder.items[i] for i in model.recommend(user, top_n=top_n, exclude=exclude)]


def score_items(model, builder, raw_user_id, raw_item_ids):
    """Score raw item IDs for a raw user ID; unknown IDs score 0.0."""
    user = builder.user_map.get(raw_user_id, -1)
    items = [builder.item_map.get(i, -1) for i in raw_item_ids]
    return dict(zip(raw_item_ids, model.predict_items(user, items)))


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Run per-user inference using a saved BPR-Linear model.')
    parser.add_argument('--user', type=int, required=True, help='Raw user ID.')
    parser.add_argument('--item', type=int, action='append', default=[],
                        help='Raw item ID to score; may be repeated. Without it, recommend.')
    parser.add_argument('--top-n', type=int, default=10, dest='top_n')
    parser.add_argument('--history', default=None,
                        help='Interaction file; items the user already has are not recommended.')
    parser.add_argument('--item-attributes', default=DEFAULT_ATTRIBUTES_PATH, dest='item_attributes')
    parser.add_argument('--model-name', default='bpr_linear', dest='model_name')
    parser.add_argument('--models-dir', default=None, dest='models_dir')
    parser.add_argument('--log-level', default='INFO', dest='log_level')
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    # --- LOAD ONCE (server startup / cold start) ---
    print("Loading model from disk ...")
    model, builder = load_recommender(args.model_name, args.item_attributes, args.models_dir)
    print(f"Model: {model}\n")

    # --- PER-USER (request handler) ---
    if args.item:
        print(f"Scores for user {args.user}:")
        print("-" * 50)
        for item_id, score in score_items(model, builder, args.user, args.item).items():
            print(f"    {item_id}: {score:.4f}")
        sys.exit(0)

    user_history = []
    if args.history:
        df = read_interactions(args.history)
        user_history = df[df['user_id'] == args.user]['item_id'].tolist()

    recs = get_recommendations(model, builder, args.user, user_history, top_n=args.top_n)
    if not recs:
        print(f"User '{args.user}' is unknown to the model.")
        sys.exit(1)

    print(f"Top-{args.top_n} recommendations for user {args.user}:")
    print("-" * 50)
    for i, item_id in enumerate(recs, 1):
        print(f"    {i:2d}. {item_id}")
