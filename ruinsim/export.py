"""
Export - CSV rows and JSON report for a completed batch.
"""
import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from ruinsim.models import BatchResult, BatchStatistics, SimulationConfig
from ruinsim.utils.exceptions import ExportError

CSV_FIELDS = [
    "run",
    "final_capital",
    "rounds",
    "bankrupt",
    "reached_target",
    "max_capital",
    "min_capital",
]


def csv_rows(batch: BatchResult) -> list[dict[str, Any]]:
    """One row per trial in run-id order; ``run`` is the 1-based index."""
    return [
        {
            "run": index + 1,
            "final_capital": result.final_capital,
            "rounds": result.rounds,
            "bankrupt": result.bankrupt,
            "reached_target": result.reached_target,
            "max_capital": result.max_capital,
            "min_capital": result.min_capital,
        }
        for index, result in enumerate(batch.results)
    ]


def write_csv(batch: BatchResult, path: Path) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            writer.writerows(csv_rows(batch))
    except OSError as exc:
        raise ExportError(str(exc), path=str(path)) from exc

    logger.info(f"Wrote {len(batch.results)} CSV rows to {path}")
    return path


def build_report(
    config: SimulationConfig,
    batch: BatchResult,
    statistics: Optional[BatchStatistics] = None,
) -> dict[str, Any]:
    """
    Bundle config, batch summary and statistics into a JSON-ready dict.

    Args:
        config: Config the batch was run with
        batch: Completed batch
        statistics: Precomputed statistics; omitted from the report if None

    Returns:
        Report dict with generated_at, config, summary and statistics keys
    """
    rounds = [result.rounds for result in batch.results]
    finals = [result.final_capital for result in batch.results]

    summary = {
        "total_runs": batch.total_runs,
        "bankrupt_count": batch.bankrupt_count,
        "target_reached_count": batch.target_reached_count,
        "ongoing_count": batch.ongoing_count,
        "bankruptcy_rate": batch.bankruptcy_rate,
        "target_reached_rate": batch.target_reached_rate,
        "ongoing_rate": batch.ongoing_rate,
        "average_rounds": batch.average_rounds,
        "rounds_std_dev": batch.rounds_std_dev,
        "average_final_capital": batch.average_final_capital,
        "min_rounds": min(rounds) if rounds else 0,
        "max_rounds": max(rounds) if rounds else 0,
        "min_final_capital": min(finals) if finals else 0.0,
        "max_final_capital": max(finals) if finals else 0.0,
    }

    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "config": config.flat_dict(),
        "summary": summary,
        "statistics": statistics.model_dump() if statistics is not None else None,
    }


def write_report(report: dict[str, Any], path: Path) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ExportError(str(exc), path=str(path)) from exc

    logger.info(f"Wrote JSON report to {path}")
    return path
