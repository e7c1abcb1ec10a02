"""Train the model-backed scorer (LightGBM regressor over rule-based factors).

Each labeled pair is scored with the rule-based scorer first; its factors
become the feature vector (see ``services.pipeline.model_scorer.FEATURE_NAMES``)
and the recruiter score (0-100) is the label.  The booster is written to
``<model_dir>/model.txt``, which ``ModelScorer`` picks up at load time.

Input is JSON Lines, one pair per line::

    {"profile": {...CandidateProfile...}, "requirement": {...payload...},
     "analysis_time": "2024-06-01", "score": 73}

Usage:
    python training/scripts/train_scorer.py [--config training/configs/scorer.yaml]
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

import numpy as np
import yaml
from scipy.stats import spearmanr

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "backend"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def load_config(path: str) -> dict:
    with open(path) as f:
        return yaml.safe_load(f)


def ndcg_at_k(y_true: np.ndarray, y_pred: np.ndarray, k: int = 5) -> float:
    """Compute NDCG@k for ranking evaluation."""
    k = min(k, len(y_true))
    order = np.argsort(-y_pred)[:k]
    dcg = np.sum(y_true[order] / np.log2(np.arange(2, k + 2)))
    ideal_order = np.argsort(-y_true)[:k]
    idcg = np.sum(y_true[ideal_order] / np.log2(np.arange(2, k + 2)))
    return float(dcg / idcg) if idcg > 0 else 0.0


def build_features(records: list[dict]) -> tuple[np.ndarray, np.ndarray]:
    """Score every labeled pair with the rules and stack the feature vectors."""
    from config import settings
    from models.schemas.profile import CandidateProfile
    from services.errors import ValidationError
    from services.pipeline.model_scorer import FEATURE_NAMES, extract_features
    from services.pipeline.rule_scorer import RuleBasedScorer
    from services.requirements import parse_requirement
    from services.taxonomy_registry import get_store

    store = get_store()
    scorer = RuleBasedScorer(store)
    config = settings.scoring_config()

    rows, labels = [], []
    for i, rec in enumerate(records):
        try:
            profile = CandidateProfile.model_validate(rec["profile"])
            requirement = parse_requirement(rec["requirement"], store)
            result = scorer.score(profile, requirement, config, date.fromisoformat(rec["analysis_time"]))
        except (ValidationError, KeyError, ValueError) as e:
            logger.warning("Skipping record %d: %s", i, e)
            continue
        features = extract_features(result, requirement)
        rows.append([features[name] for name in FEATURE_NAMES])
        labels.append(float(rec["score"]))

    return np.array(rows, dtype=np.float64), np.array(labels, dtype=np.float64)


def main(config_path: str = "training/configs/scorer.yaml") -> None:
    config = load_config(config_path)
    logger.info("Training scorer with config: %s", config["model"]["name"])

    # --- 1. Load data ---
    data_path = Path(config["data"]["path"])
    if not data_path.exists():
        logger.error("Labeled pairs not found at %s", data_path)
        return
    with open(data_path) as f:
        records = [json.loads(line) for line in f if line.strip()]
    logger.info("Loaded %d labeled pairs", len(records))

    X, y = build_features(records)
    if len(y) < 10:
        logger.error("Only %d usable records -- aborting.", len(y))
        return

    rng = np.random.default_rng(config["data"]["seed"])
    idx = rng.permutation(len(y))
    n_test = max(1, int(len(y) * config["data"]["test_fraction"]))
    n_val = max(1, int(len(y) * config["data"]["val_fraction"]))
    test_idx, val_idx, train_idx = idx[:n_test], idx[n_test:n_test + n_val], idx[n_test + n_val:]
    X_train, y_train = X[train_idx], y[train_idx]
    X_val, y_val = X[val_idx], y[val_idx]
    X_test, y_test = X[test_idx], y[test_idx]
    logger.info("Train: %d, Val: %d, Test: %d", len(y_train), len(y_val), len(y_test))

    # --- 2. Train LightGBM ---
    import lightgbm as lgb

    from services.pipeline.model_scorer import FEATURE_NAMES

    output_dir = Path(config["output"]["model_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)

    train_data = lgb.Dataset(X_train, label=y_train, feature_name=FEATURE_NAMES)
    val_data = lgb.Dataset(X_val, label=y_val, reference=train_data)

    params = {
        "objective": "regression",
        "metric": config["training"]["metric"],
        "learning_rate": config["training"]["learning_rate"],
        "max_depth": config["training"]["max_depth"],
        "num_leaves": config["training"]["num_leaves"],
        "subsample": config["training"]["subsample"],
        "colsample_bytree": config["training"]["colsample_bytree"],
        "verbose": -1,
    }

    callbacks = [
        lgb.early_stopping(config["training"]["early_stopping_rounds"]),
        lgb.log_evaluation(config["training"]["verbose"]),
    ]

    booster = lgb.train(
        params,
        train_data,
        num_boost_round=config["training"]["num_estimators"],
        valid_sets=[val_data],
        callbacks=callbacks,
    )

    model_path = output_dir / "model.txt"
    booster.save_model(str(model_path))
    logger.info("Model saved to %s", model_path)

    # --- 3. Evaluate ---
    preds = booster.predict(X_test)
    rho, pval = spearmanr(y_test, preds)
    ndcg5 = ndcg_at_k(y_test, preds, k=5)
    rmse = np.sqrt(np.mean((y_test - preds) ** 2))
    logger.info("Spearman: %.4f (p=%.6f)  NDCG@5: %.4f  RMSE: %.4f", rho, pval, ndcg5, rmse)

    targets = config["evaluation"]["targets"]
    if rho < targets["spearman"]:
        logger.warning("Spearman target %.2f NOT MET (got %.4f)", targets["spearman"], rho)
    if ndcg5 < targets["ndcg_at_5"]:
        logger.warning("NDCG@5 target %.2f NOT MET (got %.4f)", targets["ndcg_at_5"], ndcg5)

    logger.info("Feature importances (gain):")
    imp = booster.feature_importance(importance_type="gain")
    for name, val in sorted(zip(FEATURE_NAMES, imp), key=lambda x: -x[1]):
        logger.info("  %s: %.2f", name, val)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Train the fit scorer model")
    parser.add_argument("--config", default="training/configs/scorer.yaml")
    args = parser.parse_args()
    main(args.config)
