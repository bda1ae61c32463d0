"""BPR-Linear training script.

Reads an interaction file and an item attribute file, trains the BPR-Linear
model and serializes it (plus its ID mappings) to the models/ directory.

    python scripts/train_bpr_linear.py --data data/ratings.txt --item-attributes data/item_attributes.txt
    python scripts/train_bpr_linear.py --data data/ratings.txt --item-attributes data/attrs.txt \
        --options "reg=0.01 num_iter=10" --seed 1
"""

import argparse
import logging
import os
import sys
import time

from tqdm.auto import tqdm

# Ensure project root is importable regardless of working directory
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_SCRIPT_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from attribute_bpr.bpr_linear import BPRLinearRecommender
from attribute_bpr.config import BPR_LINEAR_DEFAULTS, parse_options
from attribute_bpr.interaction_io import read_interactions, read_item_attributes
from attribute_bpr.interaction_matrix import InteractionIndex, InteractionMatrixBuilder
from attribute_bpr.model_store import save_mappings, save_model


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_DATA_PATH = os.path.join(_PROJECT_ROOT, 'data', 'ratings.txt')
DEFAULT_ATTRIBUTES_PATH = os.path.join(_PROJECT_ROOT, 'data', 'item_attributes.txt')
DEFAULT_MODEL_NAME = 'bpr_linear'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _elapsed(start):
    return f"{time.time() - start:.1f}s"


class _EpochProgress:
    """Progress callback that drives one tqdm bar per epoch."""

    def __init__(self):
        self.bar = None
        self.epoch = None

    def __call__(self, epoch, done, total):
        if epoch != self.epoch:
            self.close()
            self.epoch = epoch
            self.bar = tqdm(total=total, desc=f"epoch {epoch}", unit='sample', leave=False)
        if self.bar is None:
            return
        self.bar.update(done - self.bar.n)
        if done == total:
            self.close()

    def close(self):
        if self.bar is not None:
            self.bar.close()
            self.bar = None


# ---------------------------------------------------------------------------
# Main training routine
# ---------------------------------------------------------------------------

def train(data_path, attributes_path, model_options=None, min_rating=None, max_rating=None,
          model_name=DEFAULT_MODEL_NAME, models_dir=None):
    model_options = dict(model_options or {})

    print("=" * 60)
    print("BPR-Linear training")
    print("=" * 60)

    # 1. Load interaction data
    t0 = time.time()
    print(f"\n[1/5] Loading interactions from {data_path} ...")
    df = read_interactions(data_path, min_rating=min_rating, max_rating=max_rating)
    print(f"      {len(df):,} interactions loaded  ({_elapsed(t0)})")

    # 2. Build interaction matrix and attribute index
    t0 = time.time()
    print(f"\n[2/5] Building interaction matrix and item attributes from {attributes_path} ...")
    builder = InteractionMatrixBuilder()
    interactions = InteractionIndex(builder.build(df))
    item_attributes = builder.build_attributes(read_item_attributes(attributes_path))
    print(
        f"      Matrix shape: {interactions.num_users:,} users × {interactions.num_items:,} items, "
        f"{item_attributes.num_attributes:,} attributes  ({_elapsed(t0)})"
    )

    # 3. Train
    t0 = time.time()
    progress = _EpochProgress()
    model = BPRLinearRecommender(progress_callback=progress, **model_options)
    print(f"\n[3/5] Training {model} ...")
    try:
        model.fit(interactions, item_attributes)
    finally:
        progress.close()
    print(f"      done  ({_elapsed(t0)})")

    # 4. Persist model and ID mappings
    print("\n[4/5] Saving model artifacts ...")
    kwargs = dict(models_dir=models_dir) if models_dir else {}
    path = save_model(model, model_name, **kwargs)
    save_mappings(builder.mappings(), model_name, **kwargs)
    print(f"      {path}")

    # 5. Summary
    print("\n[5/5] Training complete.")
    print("=" * 60)

    return model


# ---------------------------------------------------------------------------
# CLI entry-point
# ---------------------------------------------------------------------------

def build_parser():
    parser = argparse.ArgumentParser(description='Train the BPR-Linear recommender.')
    parser.add_argument('--data', default=DEFAULT_DATA_PATH,
                        help='Interaction file with "<user> <item> <rating>" lines.')
    parser.add_argument('--item-attributes', default=DEFAULT_ATTRIBUTES_PATH, dest='item_attributes',
                        help='Item attribute file with "<item> <attribute>" lines.')
    parser.add_argument('--options', default='',
                        help='Hyperparameters as "name=value" pairs, e.g. "reg=0.01 num_iter=10". '
                             f'Known options: {", ".join(BPR_LINEAR_DEFAULTS)}.')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed (same as the random_state option).')
    parser.add_argument('--min-rating', type=float, default=None, dest='min_rating',
                        help='Warn once if a rating is below this value.')
    parser.add_argument('--max-rating', type=float, default=None, dest='max_rating',
                        help='Warn once if a rating is above this value.')
    parser.add_argument('--model-name', default=DEFAULT_MODEL_NAME, dest='model_name')
    parser.add_argument('--models-dir', default=None, dest='models_dir',
                        help='Directory to write model artifacts (default: models/).')
    parser.add_argument('--log-level', default='INFO', dest='log_level')
    return parser


if __name__ == '__main__':
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper())

    options = parse_options(args.options)
    if args.seed is not None:
        options['random_state'] = args.seed

    train(
        data_path=args.data,
        attributes_path=args.item_attributes,
        model_options=options,
        min_rating=args.min_rating,
        max_rating=args.max_rating,
        model_name=args.model_name,
        models_dir=args.models_dir,
    )
