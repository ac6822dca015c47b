"""
LoanScope - Run Pipeline
Command-line entry point: load a loan CSV, clean and impute it, compare the
classifiers and print the recommendation.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from agents.ml.model_evaluator import summarize
from backend.pipeline_executor import LoanPipeline, PipelineConfig
from config.logging_config import get_logger, setup_logging
from config.model_registry import get_models_for_strategy, list_strategies
from config.settings import settings
from core.exceptions import LoanScopeError
from core.utils import format_percentage

log = get_logger(__name__, component="cli")


def _model_list(value: str) -> List[str]:
    """``lr,rf`` → ['lr', 'rf']; a strategy name (``fast``) expands to its models."""
    value = value.strip().lower()
    if value in list_strategies():
        return get_models_for_strategy(value, only_available=True)
    models = [m.strip() for m in value.split(",") if m.strip()]
    if not models:
        raise argparse.ArgumentTypeError("at least one model id is required")
    return models


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loanscope",
        description="Loan approval analysis: k-NN imputation, stratified split, classifier comparison"
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=settings.DATA_PATH / "loans.csv",
        help="Path to the loan CSV (default: %(default)s)"
    )
    parser.add_argument(
        "--k",
        type=int,
        default=None,
        help=f"Neighbors used by the imputer (default: {settings.KNN_NEIGHBORS})"
    )
    parser.add_argument(
        "--train-fraction",
        type=float,
        default=None,
        help=f"Share of each class used for training (default: {settings.TRAIN_FRACTION})"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help=f"Random seed (default: {settings.RANDOM_STATE})"
    )
    parser.add_argument(
        "--models",
        type=_model_list,
        default=None,
        help=(
            "Comma-separated model ids (lr,nb,knn,rf,svm,gbc,xgboost) or a "
            f"strategy name ({', '.join(list_strategies())}); "
            f"default: {settings.DEFAULT_MODELS}"
        )
    )
    parser.add_argument(
        "--strategy",
        choices=["random_search", "grid_search", "none"],
        default=None,
        help=f"Hyperparameter search (default: {settings.TUNING_STRATEGY})"
    )
    parser.add_argument(
        "--n-iter",
        type=int,
        default=None,
        help=f"Random-search candidates per model (default: {settings.TUNING_N_ITER})"
    )
    parser.add_argument(
        "--cv-folds",
        type=int,
        default=None,
        help=f"Cross-validation folds (default: {settings.CV_FOLDS})"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help=f"Reports directory; metrics land in <output>/<run_id>/ (default: {settings.REPORTS_PATH})"
    )
    parser.add_argument(
        "--no-output",
        action="store_true",
        help="Do not write metrics.json / metrics.csv"
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Console log level (default: %(default)s)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level)

    config = PipelineConfig(
        k=args.k,
        train_fraction=args.train_fraction,
        seed=args.seed,
        models=args.models,
        strategy=args.strategy,
        n_iter=args.n_iter,
        cv_folds=args.cv_folds,
        output_dir=None if args.no_output else (args.output or settings.REPORTS_PATH),
    )

    try:
        result = LoanPipeline(config).run(args.data)
    except LoanScopeError as e:
        log.error(f"Pipeline failed [{e.error_code.value}]: {e}")
        return 1

    print("\n" + "=" * 60)
    print(f"Run {result.run_id}")
    print("=" * 60)
    print(summarize(result.reports))
    print("-" * 60)
    best = result.get_report(result.recommended) if result.recommended else None
    if best is not None:
        print(
            f"Recommended model: {best.model_id} ({best.name}) | "
            f"AUC={best.auc:.4f} | accuracy={format_percentage(best.accuracy)}"
        )
    else:
        print("Recommended model: none")
    if result.artifacts:
        print(f"Metrics written to: {Path(result.artifacts['metrics_json']).parent}")
    print("=" * 60 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
