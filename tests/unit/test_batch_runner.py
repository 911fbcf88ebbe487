import math

import pytest

from ruinsim.engine import BatchRunner, RandomSource
from ruinsim.engine.batch import run_trial


def test_counts_and_averages_consistent(make_config):
    batch = BatchRunner().run(make_config(runs=300, seed="consistency"))

    assert batch.total_runs == 300
    assert batch.bankrupt_count + batch.target_reached_count + batch.ongoing_count == 300
    assert batch.average_rounds == pytest.approx(sum(r.rounds for r in batch.results) / 300)
    assert batch.average_final_capital == pytest.approx(sum(r.final_capital for r in batch.results) / 300)
    assert [r.run_id for r in batch.results] == list(range(300))


def test_histograms_cover_every_trial(make_config):
    batch = BatchRunner(histogram_bins=7).run(make_config(runs=150, seed="hist"))

    assert sum(batch.final_capital_distribution.counts) == 150
    assert sum(batch.rounds_distribution.counts) == 150
    assert batch.rounds_distribution.bin_count == 7


def test_seeded_batch_is_reproducible(make_config):
    config = make_config(runs=120, seed="repeat")
    assert BatchRunner().run(config).results == BatchRunner().run(config).results


def test_trial_uses_run_id_stream(make_config):
    config = make_config(runs=20, seed="streams")
    batch = BatchRunner().run(config)

    expected = run_trial(config, RandomSource("streams"), 13)
    assert batch.results[13] == expected


def test_parallel_matches_sequential(make_config):
    config = make_config(runs=250, seed="parallel")

    sequential = BatchRunner(progress_interval=50, workers=1).run(config)
    parallel = BatchRunner(progress_interval=50, workers=2).run(config)

    assert parallel.results == sequential.results
    assert parallel.average_rounds == sequential.average_rounds


def test_progress_cadence(make_config):
    calls = []
    BatchRunner(progress_interval=100).run(make_config(runs=350, seed="p"), on_progress=calls.append)

    assert calls == pytest.approx([100 / 350, 200 / 350, 300 / 350, 1.0])


def test_progress_exact_multiple_reports_completion_once(make_config):
    calls = []
    BatchRunner(progress_interval=100).run(make_config(runs=200, seed="p"), on_progress=calls.append)
    assert calls == pytest.approx([0.5, 1.0])


def test_failing_callback_does_not_change_results(make_config):
    config = make_config(runs=250, seed="callback")

    def explode(fraction: float) -> None:
        raise RuntimeError("display went away")

    assert BatchRunner().run(config, on_progress=explode).results == BatchRunner().run(config).results


def test_empty_batch(make_config):
    calls = []
    batch = BatchRunner().run(make_config(runs=0), on_progress=calls.append)

    assert calls == [1.0]
    assert batch.is_empty
    assert batch.total_runs == 0
    assert batch.bankruptcy_rate == 0.0
    assert batch.average_rounds == 0.0
    assert batch.final_capital_distribution.counts == [0] * 20


def test_always_lose_batch(make_config):
    batch = BatchRunner().run(make_config(runs=200, win_prob=0.0, bet_size=3))

    assert batch.bankrupt_count == 200
    assert batch.bankruptcy_rate == 1.0


def test_always_win_batch(make_config):
    batch = BatchRunner().run(make_config(runs=200, win_prob=1.0, bet_size=3))

    assert batch.target_reached_rate == 1.0
    assert all(r.rounds <= math.ceil((20 - 10) / 3) for r in batch.results)


def test_proportional_stakes_recomputed_from_trace(make_config):
    batch = BatchRunner().run(
        make_config(runs=1000, strategy="proportional", proportion=0.1, seed="prop")
    )

    for result in batch.results:
        for before, after in zip(result.trace, result.trace[1:]):
            expected = min(max(1, math.floor(before * 0.1)), before)
            assert abs(after - before) == pytest.approx(expected)


def test_rejects_bad_arguments():
    with pytest.raises(ValueError):
        BatchRunner(progress_interval=0)
    with pytest.raises(ValueError):
        BatchRunner(workers=0)
