import pytest

from ruinsim.analysis import StatisticsAggregator, TimelineAggregator
from ruinsim.engine import BatchRunner
from ruinsim.export import build_report, csv_rows
from ruinsim.validation import ensure_valid


@pytest.mark.parametrize("strategy", ["fixed", "martingale", "proportional"])
def test_full_pipeline(make_config, strategy):
    config = ensure_valid(make_config(runs=400, seed=f"pipeline-{strategy}", strategy=strategy))

    batch = BatchRunner(progress_interval=50).run(config)
    stats = StatisticsAggregator().compute(batch)
    points = TimelineAggregator(stride=5).compute(batch)

    assert stats.total_runs == batch.total_runs == 400
    assert stats.bankrupt_rate == pytest.approx(batch.bankruptcy_rate * 100)
    assert stats.average_rounds == pytest.approx(batch.average_rounds)
    assert stats.average_final_capital == pytest.approx(batch.average_final_capital)
    assert stats.risk.sample_size == 400

    assert points[0].round == 0
    assert points[0].alive_count == 400
    assert points[0].average_capital == 10
    assert points[-1].round == stats.max_rounds
    assert points[-1].bankrupt_count == batch.bankrupt_count
    assert points[-1].target_reached_count == batch.target_reached_count

    rows = csv_rows(batch)
    assert len(rows) == 400
    assert sum(row["bankrupt"] for row in rows) == batch.bankrupt_count

    report = build_report(config, batch, stats)
    assert report["statistics"]["bankrupt_count"] == batch.bankrupt_count


def test_parallel_pipeline_statistics_match(make_config):
    config = make_config(runs=300, seed="workers")

    sequential = StatisticsAggregator().compute(BatchRunner(progress_interval=60).run(config))
    parallel = StatisticsAggregator().compute(BatchRunner(progress_interval=60, workers=3).run(config))

    assert parallel == sequential


def test_fair_game_expectation(make_config):
    batch = BatchRunner().run(make_config(runs=2000, seed="fair"))

    # Fair game from 10 to 20 ruins about half the time
    assert 0.4 < batch.bankruptcy_rate < 0.6
    assert batch.ongoing_count == 0
