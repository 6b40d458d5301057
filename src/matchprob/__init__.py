"""
matchprob: football match outcome probabilities from team-strength inputs.

The package offers three interchangeable methods sharing one output
contract: a closed-form Poisson grid, a seeded Monte Carlo simulation and an
adjusted-xG model that runs the bounded rate adjustment pipeline first.
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - exercised in packaging workflows
    __version__ = version("matchprob")
except PackageNotFoundError:  # pragma: no cover - local editable installs
    __version__ = "0.0.0"

_EXPORTS = {
    # Kernel facade
    "PredictionKernel": ".kernel",
    "ModelComparison": ".kernel",
    # Value types
    "RateParameters": ".models",
    "LambdaPair": ".models",
    "OutcomeDistribution": ".models",
    "ScorelineFrequency": ".models",
    "MarketProbabilities": ".models",
    "Prediction": ".models",
    # Components
    "SeededRandom": ".random_source",
    "PoissonEngine": ".poisson",
    "PoissonCache": ".poisson",
    "MonteCarloSimulator": ".simulation",
    "PoissonCalculator": ".analytic",
    "RateAdjustmentPipeline": ".adjustment",
    "adjust": ".adjustment",
    # Evaluation
    "evaluate": ".evaluation",
    "score_outcome": ".evaluation",
    # Errors
    "InvalidInput": ".errors",
    "MatchprobError": ".errors",
    "NumericDegeneracy": ".errors",
    "OutOfRangeWarning": ".errors",
    # Configuration
    "get_config": ".config",
    "update_config": ".config",
    "reset_config": ".config",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:  # pragma: no cover - thin lazy importer
    from importlib import import_module

    target_module = _EXPORTS.get(name)
    if not target_module:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(target_module, __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:  # pragma: no cover - trivial
    return sorted(list(globals().keys()) + __all__)
