"""Model store utilities.

Provides a single source of truth for artifact naming and I/O so that the
training script and inference code never hard-code paths in two places.

Each model is stored as two files in the models directory:

    <name>.model      weight matrix in the plain-text model format
    <name>.mappings   raw <-> internal ID mappings, serialized with joblib

Usage (training):
    from attribute_bpr.model_store import save_model, save_mappings
    save_model(model, 'bpr_linear')               # → models/bpr_linear.model
    save_mappings(builder.mappings(), 'bpr_linear')

Usage (inference):
    from attribute_bpr.model_store import load_model, load_mappings
    from attribute_bpr.bpr_linear import BPRLinearRecommender
    model = load_model(BPRLinearRecommender, 'bpr_linear')
    mappings = load_mappings('bpr_linear')
"""

import logging
import os

import joblib

logger = logging.getLogger(__name__)

MODEL_SUFFIX = '.model'
MAPPINGS_SUFFIX = '.mappings'

# Default directory for serialized model artifacts, relative to the project root.
# The project root is resolved as two levels up from this file (attribute_bpr/ → root).
_THIS_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_THIS_DIR)
DEFAULT_MODELS_DIR = os.path.join(_PROJECT_ROOT, 'models')


def get_model_path(model_name, models_dir=None, suffix=MODEL_SUFFIX):
    """Return the full path for a model artifact file.

    Args:
        model_name: Logical name for the model (e.g. 'bpr_linear').
        models_dir: Directory to look in.  Defaults to <project_root>/models/.
        suffix:     File extension of the artifact.

    Returns:
        Path string ending in '<model_name><suffix>'.
    """
    models_dir = models_dir or DEFAULT_MODELS_DIR
    return os.path.join(models_dir, f"{model_name}{suffix}")


def save_model(model, model_name, models_dir=None):
    """Write a trained model to disk via its save(path) method.

    Returns:
        The path written to.
    """
    models_dir = models_dir or DEFAULT_MODELS_DIR
    os.makedirs(models_dir, exist_ok=True)

    path = get_model_path(model_name, models_dir)
    model.save(path)

    logger.info("Saved '%s' → %s", model_name, path)
    return path


def load_model(model_class, model_name, models_dir=None, **kwargs):
    """Load a saved model through model_class.load(path, **kwargs).

    Raises:
        FileNotFoundError: If the artifact file does not exist.
    """
    path = get_model_path(model_name, models_dir)

    if not os.path.exists(path):
        raise FileNotFoundError(
            f"No saved artifact found for '{model_name}' at {path}. "
            "Run the training script first."
        )

    model = model_class.load(path, **kwargs)
    logger.info("Loaded '%s' from %s", model_name, path)
    return model


def save_mappings(mappings, model_name, models_dir=None):
    """Serialize the ID mappings of a model (dict of name -> list of raw IDs)."""
    models_dir = models_dir or DEFAULT_MODELS_DIR
    os.makedirs(models_dir, exist_ok=True)

    path = get_model_path(model_name, models_dir, suffix=MAPPINGS_SUFFIX)
    joblib.dump(mappings, path)
    return path


def load_mappings(model_name, models_dir=None):
    path = get_model_path(model_name, models_dir, suffix=MAPPINGS_SUFFIX)
    if not os.path.exists(path):
        raise FileNotFoundError(f"No saved ID mappings found for '{model_name}' at {path}.")
    return joblib.load(path)


def list_saved_models(models_dir=None):
    """List all model artifacts currently saved in models_dir.

    Returns:
        List of logical model names (filename stems without extension).
    """
    models_dir = models_dir or DEFAULT_MODELS_DIR
    if not os.path.isdir(models_dir):
        return []
    return [
        os.path.splitext(f)[0]
        for f in sorted(os.listdir(models_dir))
        if f.endswith(MODEL_SUFFIX)
    ]
