from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

from config.settings import get_settings
from ruinsim.analysis import StatisticsAggregator, TimelineAggregator
from ruinsim.dashboard import TerminalDashboard
from ruinsim.engine import BatchRunner, TrialEngine
from ruinsim.export import build_report, write_csv, write_report
from ruinsim.models import SimulationConfig
from ruinsim.utils.exceptions import ConfigValidationError, FieldError, RuinSimError
from ruinsim.utils.logging import setup_logging
from ruinsim.validation import ensure_valid, read_config_file, validate_config

app = typer.Typer(no_args_is_help=True)
console = Console()

CONFIG_OPTION = typer.Option(None, "--config", help="JSON config file (flat or nested strategy form)")
INITIAL_CAPITAL_OPTION = typer.Option(None, "--initial-capital", help="Starting capital")
TARGET_CAPITAL_OPTION = typer.Option(None, "--target-capital", help="Capital at which a trial succeeds")
UNBOUNDED_OPTION = typer.Option(False, "--unbounded", help="Run without a target capital")
BET_SIZE_OPTION = typer.Option(None, "--bet-size", help="Base stake")
WIN_PROB_OPTION = typer.Option(None, "--win-prob", help="Probability of winning a round")
ODD_RATIO_OPTION = typer.Option(None, "--odd-ratio", help="Payout multiple on a win")
MAX_ROUNDS_OPTION = typer.Option(None, "--max-rounds", help="Round cap per trial")
RUNS_OPTION = typer.Option(None, "--runs", help="Number of trials in a batch")
STRATEGY_OPTION = typer.Option(None, "--strategy", help="fixed, martingale or proportional")
PROPORTION_OPTION = typer.Option(None, "--proportion", help="Capital fraction for proportional")
STREAK_RESET_OPTION = typer.Option(None, "--streak-reset", help="Martingale loss streak that resets the bet")
SEED_OPTION = typer.Option(None, "--seed", help="Seed string for reproducible runs")
WORKERS_OPTION = typer.Option(None, "--workers", min=1, help="Worker processes for batch runs")


def _resolve_config(config_path: Optional[Path], unbounded: bool, **overrides: Any) -> SimulationConfig:
    base = read_config_file(config_path) if config_path is not None else None
    return get_settings().defaults.to_config(base, unbounded=unbounded, **overrides)


def _report_validation(errors: list[FieldError]) -> None:
    typer.echo("Invalid simulation config:", err=True)
    for item in errors:
        typer.echo(f"  - {item}", err=True)


@app.command()
def single(
    config_path: Optional[Path] = CONFIG_OPTION,
    initial_capital: Optional[float] = INITIAL_CAPITAL_OPTION,
    target_capital: Optional[float] = TARGET_CAPITAL_OPTION,
    unbounded: bool = UNBOUNDED_OPTION,
    bet_size: Optional[float] = BET_SIZE_OPTION,
    win_prob: Optional[float] = WIN_PROB_OPTION,
    odd_ratio: Optional[float] = ODD_RATIO_OPTION,
    max_rounds: Optional[int] = MAX_ROUNDS_OPTION,
    runs: Optional[int] = RUNS_OPTION,
    strategy: Optional[str] = STRATEGY_OPTION,
    proportion: Optional[float] = PROPORTION_OPTION,
    streak_reset: Optional[int] = STREAK_RESET_OPTION,
    seed: Optional[str] = SEED_OPTION,
    trace_points: int = typer.Option(20, help="Trace rows to print"),
) -> None:
    """Run one trial and print its outcome and capital trace."""
    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.log_dir)

        config = ensure_valid(
            _resolve_config(
                config_path,
                unbounded,
                initial_capital=initial_capital,
                target_capital=target_capital,
                bet_size=bet_size,
                win_prob=win_prob,
                odd_ratio=odd_ratio,
                max_rounds=max_rounds,
                runs=runs,
                strategy=strategy,
                proportion=proportion,
                streak_reset_count=streak_reset,
                seed=seed,
            )
        )

        result = TrialEngine(config).run()
        TerminalDashboard(console).show_trial(result, trace_points=trace_points)

    except ConfigValidationError as e:
        _report_validation(e.errors)
        raise typer.Exit(code=2)
    except RuinSimError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Trial failed: {e}", err=True)
        logger.exception("Single command failed")
        raise typer.Exit(code=1)


@app.command()
def batch(
    config_path: Optional[Path] = CONFIG_OPTION,
    initial_capital: Optional[float] = INITIAL_CAPITAL_OPTION,
    target_capital: Optional[float] = TARGET_CAPITAL_OPTION,
    unbounded: bool = UNBOUNDED_OPTION,
    bet_size: Optional[float] = BET_SIZE_OPTION,
    win_prob: Optional[float] = WIN_PROB_OPTION,
    odd_ratio: Optional[float] = ODD_RATIO_OPTION,
    max_rounds: Optional[int] = MAX_ROUNDS_OPTION,
    runs: Optional[int] = RUNS_OPTION,
    strategy: Optional[str] = STRATEGY_OPTION,
    proportion: Optional[float] = PROPORTION_OPTION,
    streak_reset: Optional[int] = STREAK_RESET_OPTION,
    seed: Optional[str] = SEED_OPTION,
    workers: Optional[int] = WORKERS_OPTION,
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write one CSV row per trial"),
    report_path: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report"),
) -> None:
    """Run a batch of trials and print the summary, histograms and statistics."""
    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.log_dir)

        config = ensure_valid(
            _resolve_config(
                config_path,
                unbounded,
                initial_capital=initial_capital,
                target_capital=target_capital,
                bet_size=bet_size,
                win_prob=win_prob,
                odd_ratio=odd_ratio,
                max_rounds=max_rounds,
                runs=runs,
                strategy=strategy,
                proportion=proportion,
                streak_reset_count=streak_reset,
                seed=seed,
            )
        )

        runner = BatchRunner(
            progress_interval=settings.engine.progress_interval,
            workers=settings.engine.workers if workers is None else workers,
            histogram_bins=settings.engine.histogram_bins,
        )

        with Progress(
            TextColumn("[bold]Simulating"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("batch", total=1.0)
            result = runner.run(config, on_progress=lambda fraction: progress.update(task, completed=fraction))

        statistics = StatisticsAggregator().compute(result)

        dashboard = TerminalDashboard(console)
        dashboard.show_batch(result)
        dashboard.show_statistics(statistics)

        if csv_path is not None:
            write_csv(result, csv_path)
            typer.echo(f"CSV written to {csv_path}")
        if report_path is not None:
            write_report(build_report(config, result, statistics), report_path)
            typer.echo(f"Report written to {report_path}")

    except ConfigValidationError as e:
        _report_validation(e.errors)
        raise typer.Exit(code=2)
    except RuinSimError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Batch failed: {e}", err=True)
        logger.exception("Batch command failed")
        raise typer.Exit(code=1)


@app.command()
def timeline(
    config_path: Optional[Path] = CONFIG_OPTION,
    initial_capital: Optional[float] = INITIAL_CAPITAL_OPTION,
    target_capital: Optional[float] = TARGET_CAPITAL_OPTION,
    unbounded: bool = UNBOUNDED_OPTION,
    bet_size: Optional[float] = BET_SIZE_OPTION,
    win_prob: Optional[float] = WIN_PROB_OPTION,
    odd_ratio: Optional[float] = ODD_RATIO_OPTION,
    max_rounds: Optional[int] = MAX_ROUNDS_OPTION,
    runs: Optional[int] = RUNS_OPTION,
    strategy: Optional[str] = STRATEGY_OPTION,
    proportion: Optional[float] = PROPORTION_OPTION,
    streak_reset: Optional[int] = STREAK_RESET_OPTION,
    seed: Optional[str] = SEED_OPTION,
    workers: Optional[int] = WORKERS_OPTION,
    every: Optional[int] = typer.Option(None, "--every", help="Report every N rounds"),
) -> None:
    """Run a batch and print per-round timeline statistics."""
    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.log_dir)

        config = ensure_valid(
            _resolve_config(
                config_path,
                unbounded,
                initial_capital=initial_capital,
                target_capital=target_capital,
                bet_size=bet_size,
                win_prob=win_prob,
                odd_ratio=odd_ratio,
                max_rounds=max_rounds,
                runs=runs,
                strategy=strategy,
                proportion=proportion,
                streak_reset_count=streak_reset,
                seed=seed,
            )
        )

        runner = BatchRunner(
            progress_interval=settings.engine.progress_interval,
            workers=settings.engine.workers if workers is None else workers,
            histogram_bins=settings.engine.histogram_bins,
        )
        result = runner.run(config)

        aggregator = TimelineAggregator(
            stride=every or settings.engine.timeline_stride,
            volatility_window=settings.engine.volatility_window,
        )
        TerminalDashboard(console).show_timeline(aggregator.compute(result))

    except ConfigValidationError as e:
        _report_validation(e.errors)
        raise typer.Exit(code=2)
    except RuinSimError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Timeline failed: {e}", err=True)
        logger.exception("Timeline command failed")
        raise typer.Exit(code=1)


@app.command()
def validate(
    config_path: Optional[Path] = CONFIG_OPTION,
    initial_capital: Optional[float] = INITIAL_CAPITAL_OPTION,
    target_capital: Optional[float] = TARGET_CAPITAL_OPTION,
    unbounded: bool = UNBOUNDED_OPTION,
    bet_size: Optional[float] = BET_SIZE_OPTION,
    win_prob: Optional[float] = WIN_PROB_OPTION,
    odd_ratio: Optional[float] = ODD_RATIO_OPTION,
    max_rounds: Optional[int] = MAX_ROUNDS_OPTION,
    runs: Optional[int] = RUNS_OPTION,
    strategy: Optional[str] = STRATEGY_OPTION,
    proportion: Optional[float] = PROPORTION_OPTION,
    streak_reset: Optional[int] = STREAK_RESET_OPTION,
    seed: Optional[str] = SEED_OPTION,
) -> None:
    """Validate a simulation config and list every problem found."""
    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.log_dir)

        config = _resolve_config(
            config_path,
            unbounded,
            initial_capital=initial_capital,
            target_capital=target_capital,
            bet_size=bet_size,
            win_prob=win_prob,
            odd_ratio=odd_ratio,
            max_rounds=max_rounds,
            runs=runs,
            strategy=strategy,
            proportion=proportion,
            streak_reset_count=streak_reset,
            seed=seed,
        )

        outcome = validate_config(config)
        if not outcome.is_valid:
            raise ConfigValidationError(outcome.errors)

        typer.echo(
            f"Configuration is valid: strategy={config.strategy_name}, "
            f"runs={config.runs}, max_rounds={config.max_rounds}"
        )

    except ConfigValidationError as e:
        _report_validation(e.errors)
        raise typer.Exit(code=2)
    except RuinSimError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Validation failed: {e}", err=True)
        logger.exception("Validate command failed")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
