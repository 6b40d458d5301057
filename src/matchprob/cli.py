"""Command line interface for the match prediction kernel."""

from __future__ import annotations

import argparse
import dataclasses
import json
from typing import Callable, List, Protocol, Sequence, TypeVar
from typing import runtime_checkable

from .config import MatchprobConfig, get_config, load_config
from .errors import InvalidInput
from .evaluation import evaluate, load_matches
from .kernel import PredictionKernel, normalize_method
from .logging import configure_logging
from .models import Prediction, RateParameters


@runtime_checkable
class CommandHandler(Protocol):
    def __call__(self, kernel: PredictionKernel, args: argparse.Namespace) -> int:
        """Execute a command and return its exit status."""


HandlerT = TypeVar("HandlerT", bound=CommandHandler)


@dataclasses.dataclass(slots=True)
class Subcommand:
    """Container describing a CLI sub-command."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: CommandHandler

    def add_to_parser(
        self,
        subparsers,
        parent: argparse.ArgumentParser,
    ) -> argparse.ArgumentParser:
        """Create the parser for this subcommand."""

        parser = subparsers.add_parser(self.name, parents=[parent], help=self.help)
        self.configure(parser)
        parser.set_defaults(handler=self.handler, command=self.name)
        return parser


class SubcommandApp:
    """Registry that wires handlers into an :class:`argparse` parser."""

    def __init__(self, description: str | None = None) -> None:
        self._commands: list[Subcommand] = []
        self._description = description

    def command(
        self,
        name: str,
        *,
        help: str,
        configure: Callable[[argparse.ArgumentParser], None],
    ) -> Callable[[HandlerT], HandlerT]:
        """Register ``handler`` as a sub-command with configuration callback."""

        def _decorator(handler: HandlerT) -> HandlerT:
            if not isinstance(handler, CommandHandler):
                raise TypeError("Command handlers must be callable")
            self._commands.append(
                Subcommand(name=name, help=help, configure=configure, handler=handler)
            )
            return handler

        return _decorator

    @property
    def commands(self) -> Sequence[Subcommand]:
        return tuple(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parent = argparse.ArgumentParser(add_help=False)
        parent.add_argument("--config", dest="config_file")
        parent.add_argument("--log-level", dest="log_level")
        parent.add_argument("--seed", type=int)
        parent.add_argument("--trials", type=int)

        parser = argparse.ArgumentParser(description=self._description)
        subparsers = parser.add_subparsers(dest="command", required=True)
        for command in self._commands:
            command.add_to_parser(subparsers, parent)
        return parser


APP = SubcommandApp(description=__doc__)

_METHOD_CHOICES = ["poisson", "monte-carlo", "xg"]


def _configure_predict(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--home-attack", type=float, required=True)
    parser.add_argument("--away-attack", type=float, required=True)
    parser.add_argument("--home-concession", type=float, default=1.0)
    parser.add_argument("--away-concession", type=float, default=1.0)
    parser.add_argument("--home-advantage", type=float, default=0.3)
    parser.add_argument("--form", type=float, default=1.0)
    parser.add_argument("--weather", type=float, default=1.0)
    parser.add_argument("--motivation", type=float, default=1.0)
    parser.add_argument("--head-to-head", type=float, default=1.0)
    parser.add_argument("--recent-form", type=float, default=0.0)
    parser.add_argument(
        "--method",
        choices=_METHOD_CHOICES + ["all"],
        default="poisson",
        help="Prediction method, or 'all' to compare every method",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")


def _configure_evaluate(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="CSV or Parquet file with historical matches")
    parser.add_argument("--method", choices=_METHOD_CHOICES, default="poisson")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")


def _params_from_args(args: argparse.Namespace) -> RateParameters:
    return RateParameters(
        home_attack=args.home_attack,
        away_attack=args.away_attack,
        home_concession=args.home_concession,
        away_concession=args.away_concession,
        home_advantage=args.home_advantage,
        form=args.form,
        weather=args.weather,
        motivation=args.motivation,
        head_to_head=args.head_to_head,
        recent_form=args.recent_form,
    )


def _render_prediction(prediction: Prediction) -> List[str]:
    data = prediction.to_dict()
    lines = [
        f"{prediction.method} (lambda {data['lambdas']['home_lambda']:.3f} / "
        f"{data['lambdas']['away_lambda']:.3f})",
        f"  Home win: {data['home_win_pct']:5.1f}%",
        f"  Draw:     {data['draw_pct']:5.1f}%",
        f"  Away win: {data['away_win_pct']:5.1f}%",
        f"  Expected goals: {data['expected_home_goals']:.2f} - {data['expected_away_goals']:.2f}",
        f"  Confidence: {data['confidence_pct']:.1f}%",
    ]
    markets = data["markets"]
    lines.append(
        f"  BTTS {markets['btts_pct']:.1f}%  O2.5 {markets['over_25_pct']:.1f}%  "
        f"U2.5 {markets['under_25_pct']:.1f}%"
    )
    scores = ", ".join(
        f"{line['score']} ({line['probability_pct']:.1f}%)" for line in data["scorelines"]
    )
    lines.append(f"  Likely scores: {scores}")
    return lines


@APP.command("predict", help="Predict a single match", configure=_configure_predict)
def _predict(kernel: PredictionKernel, args: argparse.Namespace) -> int:
    params = _params_from_args(args)
    if args.method == "all":
        comparison = kernel.compare(params, trials=args.trials, seed=args.seed)
        if args.json:
            print(json.dumps(comparison.to_dict(), indent=2))
            return 0
        for prediction in comparison.predictions.values():
            print("\n".join(_render_prediction(prediction)))
        spread = comparison.spread()
        print(
            "Method spread: "
            + ", ".join(f"{name} {value:.1f} pts" for name, value in spread.items())
        )
        return 0

    prediction = kernel.predict(
        params, normalize_method(args.method), trials=args.trials, seed=args.seed
    )
    if args.json:
        print(json.dumps(prediction.to_dict(), indent=2))
    else:
        print("\n".join(_render_prediction(prediction)))
    return 0


@APP.command(
    "evaluate", help="Score a method against historical matches", configure=_configure_evaluate
)
def _evaluate(kernel: PredictionKernel, args: argparse.Namespace) -> int:
    matches = load_matches(args.path)
    if not matches:
        print("No historical matches available for evaluation.")
        return 1
    metrics = evaluate(kernel, matches, args.method, trials=args.trials, seed=args.seed)
    summary = {
        "method": metrics.method,
        "matches": metrics.scored_matches,
        "accuracy_pct": round(metrics.accuracy_pct, 2),
        "brier": round(metrics.average_brier, 4),
        "log_likelihood": round(metrics.average_log_likelihood, 4),
        "sharpness": round(metrics.sharpness, 4),
        "calibration_error": round(metrics.calibration_error, 4),
    }
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        for key, value in summary.items():
            print(f"{key}: {value}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    return APP.build_parser()


def _resolve_config(args: argparse.Namespace) -> MatchprobConfig:
    if args.config_file:
        return load_config(args.config_file)
    return get_config()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = _resolve_config(args)
    try:
        configure_logging(args.log_level or config.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    kernel = PredictionKernel(config, seed=args.seed)
    handler: CommandHandler = args.handler
    try:
        return handler(kernel, args)
    except InvalidInput as exc:
        raise SystemExit(f"Invalid input: {exc}") from exc
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Error: {exc}") from exc


__all__ = ["APP", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
