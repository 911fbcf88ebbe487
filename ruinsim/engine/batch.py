"""
Batch Runner - Executes many independent trials and summarizes them.
"""
import math
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, Optional, Sequence

from loguru import logger

from ruinsim.analysis.binning import DistributionBinner
from ruinsim.engine.rng import RandomSource
from ruinsim.engine.trial import TrialEngine
from ruinsim.models import BatchResult, SimulationConfig, TrialResult

ProgressCallback = Callable[[float], None]


def run_trial(config: SimulationConfig, root: RandomSource, run_id: int) -> TrialResult:
    """Run trial ``run_id`` on its own stream derived from the batch root."""
    return TrialEngine(config, root.spawn(run_id)).run(run_id)


def _run_chunk(
    config: SimulationConfig,
    entropy: int,
    seed: Optional[str],
    start: int,
    stop: int,
) -> list[TrialResult]:
    root = RandomSource.from_entropy(entropy, seed=seed)
    return [run_trial(config, root, run_id) for run_id in range(start, stop)]


def summarize_results(
    results: Sequence[TrialResult],
    initial_capital: float,
    target_capital: Optional[float] = None,
    seed: Optional[str] = None,
    histogram_bins: int = 20,
) -> BatchResult:
    """Build a BatchResult from trial results already ordered by run id."""
    binner = DistributionBinner(histogram_bins)
    total = len(results)

    bankrupt_count = sum(1 for r in results if r.bankrupt)
    target_count = sum(1 for r in results if r.reached_target)
    ongoing_count = total - bankrupt_count - target_count

    rounds = [r.rounds for r in results]
    finals = [r.final_capital for r in results]

    if total > 0:
        average_rounds = sum(rounds) / total
        variance = sum((n - average_rounds) ** 2 for n in rounds) / total
        rounds_std_dev = math.sqrt(variance)
        average_final = sum(finals) / total
    else:
        average_rounds = rounds_std_dev = average_final = 0.0

    return BatchResult(
        total_runs=total,
        bankrupt_count=bankrupt_count,
        target_reached_count=target_count,
        ongoing_count=ongoing_count,
        bankruptcy_rate=bankrupt_count / total if total else 0.0,
        target_reached_rate=target_count / total if total else 0.0,
        ongoing_rate=ongoing_count / total if total else 0.0,
        average_rounds=average_rounds,
        rounds_std_dev=rounds_std_dev,
        average_final_capital=average_final,
        final_capital_distribution=binner.histogram(finals),
        rounds_distribution=binner.histogram(rounds),
        results=list(results),
        initial_capital=initial_capital,
        target_capital=target_capital,
        seed=seed,
    )


class BatchRunner:
    """
    Runs ``config.runs`` independent trials.

    Trial ``i`` always draws from the stream spawned for run id ``i`` off a
    single batch root, so a seeded batch produces identical results whether
    it runs sequentially or sharded across worker processes.
    """

    def __init__(
        self,
        progress_interval: int = 100,
        workers: int = 1,
        histogram_bins: int = 20,
    ):
        """
        Initialize the runner.

        Args:
            progress_interval: Completed trials between progress notifications
            workers: Worker processes; 1 runs in the calling thread
            histogram_bins: Bin count for the two result histograms
        """
        if progress_interval < 1:
            raise ValueError(f"progress_interval must be >= 1, got {progress_interval}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.progress_interval = progress_interval
        self.workers = workers
        self.histogram_bins = histogram_bins

    def run(
        self,
        config: SimulationConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Run a full batch.

        Args:
            config: Simulation parameters; ``config.runs`` trials are executed
            on_progress: Optional callback receiving the completed fraction

        Returns:
            BatchResult with results ordered by run id
        """
        total = config.runs
        root = RandomSource(config.seed)

        logger.info(
            f"Batch started: {total} runs, strategy={config.strategy_name}, "
            f"seed={config.seed!r}, workers={self.workers}"
        )

        if self.workers > 1 and total > self.progress_interval:
            results = self._run_parallel(config, root, on_progress)
        else:
            results = self._run_sequential(config, root, on_progress)

        self._notify(on_progress, 1.0)

        batch = summarize_results(
            results,
            initial_capital=config.initial_capital,
            target_capital=config.target_capital,
            seed=config.seed,
            histogram_bins=self.histogram_bins,
        )

        logger.info(
            f"Batch completed: {total} runs, "
            f"bankrupt {batch.bankruptcy_rate:.1%}, "
            f"target {batch.target_reached_rate:.1%}, "
            f"avg rounds {batch.average_rounds:.1f}"
        )
        return batch

    def _run_sequential(
        self,
        config: SimulationConfig,
        root: RandomSource,
        on_progress: Optional[ProgressCallback],
    ) -> list[TrialResult]:
        total = config.runs
        results: list[TrialResult] = []
        for run_id in range(total):
            results.append(run_trial(config, root, run_id))
            completed = run_id + 1
            if completed % self.progress_interval == 0 and completed < total:
                self._notify(on_progress, completed / total)
        return results

    def _run_parallel(
        self,
        config: SimulationConfig,
        root: RandomSource,
        on_progress: Optional[ProgressCallback],
    ) -> list[TrialResult]:
        total = config.runs
        slots: list[Optional[TrialResult]] = [None] * total
        completed = 0

        with ProcessPoolExecutor(max_workers=self.workers) as pool:
            futures = [
                pool.submit(
                    _run_chunk,
                    config,
                    root.entropy,
                    root.seed,
                    start,
                    min(start + self.progress_interval, total),
                )
                for start in range(0, total, self.progress_interval)
            ]
            for future in as_completed(futures):
                chunk = future.result()
                for result in chunk:
                    slots[result.run_id] = result
                completed += len(chunk)
                if completed < total:
                    self._notify(on_progress, completed / total)

        return [result for result in slots if result is not None]

    @staticmethod
    def _notify(on_progress: Optional[ProgressCallback], fraction: float) -> None:
        if on_progress is None:
            return
        try:
            on_progress(fraction)
        except Exception as e:
            logger.warning(f"Progress callback failed at {fraction:.0%}: {e}")
