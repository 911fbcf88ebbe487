"""
Terminal Dashboard - Rich rendering of simulation output for the CLI.
"""
from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table, box

from ruinsim.models import (
    BatchResult,
    BatchStatistics,
    DistributionHistogram,
    RiskMetrics,
    TimelinePoint,
    TrialResult,
    TrialState,
)

BAR_WIDTH = 40

STATE_STYLES = {
    TrialState.BANKRUPT: "red bold",
    TrialState.TARGET_REACHED: "green bold",
    TrialState.ROUND_CAPPED: "yellow",
    TrialState.ACTIVE: "dim",
}


def _signed(value: float, suffix: str = "") -> str:
    style = "green" if value >= 0 else "red"
    return f"[{style}]{value:+.2f}{suffix}[/{style}]"


def sample_trace(trace: Sequence[float], limit: int = 20) -> list[tuple[int, float]]:
    """Evenly spaced (round, capital) pairs, always including the last entry."""
    if not trace:
        return []
    step = max(1, (len(trace) - 1) // max(1, limit - 1))
    picks = list(range(0, len(trace), step))
    if picks[-1] != len(trace) - 1:
        picks.append(len(trace) - 1)
    return [(index, trace[index]) for index in picks]


class TerminalDashboard:
    """Renders trials, batches, statistics and timelines as rich tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def show_trial(self, result: TrialResult, trace_points: int = 20) -> None:
        style = STATE_STYLES[result.state]
        lines = [
            f"[bold]Outcome:[/bold] [{style}]{result.state.value}[/{style}]",
            f"[bold]Rounds:[/bold] {result.rounds}",
            f"[bold]Final capital:[/bold] {result.final_capital:.2f}  |  "
            f"[bold]Profit:[/bold] {_signed(result.profit)}",
            f"[bold]Peak:[/bold] {result.max_capital:.2f}  |  "
            f"[bold]Trough:[/bold] {result.min_capital:.2f}",
        ]
        if result.stop_trigger:
            lines.append(f"[bold]Stopped by:[/bold] {result.stop_trigger}")
        self.console.print(Panel("\n".join(lines), title=f"Trial #{result.run_id}", box=box.ROUNDED))

        tbl = Table(title="Capital Trace", box=box.ROUNDED)
        tbl.add_column("Round", justify="right", width=10)
        tbl.add_column("Capital", justify="right", width=12)
        for index, capital in sample_trace(result.trace, trace_points):
            tbl.add_row(str(index), f"{capital:.2f}")
        self.console.print(tbl)

    def show_batch(self, batch: BatchResult) -> None:
        if batch.is_empty:
            self.console.print("[dim]No trials were run.[/dim]")
            return

        summary = (
            f"[bold]Runs:[/bold] {batch.total_runs}  |  "
            f"[bold]Avg rounds:[/bold] {batch.average_rounds:.1f} "
            f"(std {batch.rounds_std_dev:.1f})  |  "
            f"[bold]Avg final capital:[/bold] {batch.average_final_capital:.2f}\n"
            f"[red]Bankrupt:[/red] {batch.bankrupt_count} ({batch.bankruptcy_rate:.1%})  |  "
            f"[green]Target reached:[/green] {batch.target_reached_count} "
            f"({batch.target_reached_rate:.1%})  |  "
            f"[yellow]Round capped:[/yellow] {batch.ongoing_count} ({batch.ongoing_rate:.1%})"
        )
        self.console.print(Panel(summary, title="Batch Summary", box=box.ROUNDED))
        self.show_histogram(batch.final_capital_distribution, "Final Capital Distribution")
        self.show_histogram(batch.rounds_distribution, "Rounds Distribution")

    def show_histogram(self, histogram: DistributionHistogram, title: str) -> None:
        tbl = Table(title=title, box=box.ROUNDED)
        tbl.add_column("From", justify="right", width=12)
        tbl.add_column("To", justify="right", width=12)
        tbl.add_column("Count", justify="right", width=8)
        tbl.add_column("", min_width=BAR_WIDTH)

        peak = max(histogram.counts) if histogram.counts else 0
        edges = histogram.bin_edges()
        for index, count in enumerate(histogram.counts):
            bar = "#" * round(count / peak * BAR_WIDTH) if peak else ""
            tbl.add_row(f"{edges[index]:.2f}", f"{edges[index + 1]:.2f}", str(count), f"[cyan]{bar}[/cyan]")
        self.console.print(tbl)

    def show_statistics(self, stats: BatchStatistics) -> None:
        if stats.total_runs == 0:
            self.console.print("[dim]No statistics for an empty batch.[/dim]")
            return

        outcome = Table(title="Outcomes and Returns", box=box.ROUNDED)
        outcome.add_column("Metric", min_width=24)
        outcome.add_column("Value", justify="right", width=14)
        rows = [
            ("Bankruptcy probability", f"{stats.bankruptcy_probability:.2f}%"),
            ("Target reached", f"{stats.target_reached_rate:.2f}%"),
            ("Round capped", f"{stats.ongoing_rate:.2f}%"),
            ("Rounds avg / median", f"{stats.average_rounds:.1f} / {stats.median_rounds:.0f}"),
            ("Rounds min / max", f"{stats.min_rounds} / {stats.max_rounds}"),
            ("Final capital avg", f"{stats.average_final_capital:.2f}"),
            ("Final capital median", f"{stats.median_final_capital:.2f}"),
            ("Total return", _signed(stats.total_return_pct, "%")),
            ("Average return", _signed(stats.average_return_pct, "%")),
            ("Best / worst return", f"{stats.max_return_pct:+.1f}% / {stats.max_loss_pct:+.1f}%"),
            ("Capital efficiency", f"{stats.capital_efficiency:.4f}"),
            ("Stability (R²)", f"{stats.stability_coefficient:.3f}"),
            ("Trade quality", f"{stats.trade_quality:.1f}"),
        ]
        for name, value in rows:
            outcome.add_row(name, value)
        self.console.print(outcome)
        self.console.print(self.risk_table(stats.risk))

    def risk_table(self, risk: RiskMetrics) -> Table:
        tbl = Table(title="Risk Metrics", box=box.ROUNDED)
        tbl.add_column("Metric", min_width=20)
        tbl.add_column("Value", justify="right", width=12)
        tbl.add_column("Metric", min_width=20)
        tbl.add_column("Value", justify="right", width=12)

        cells = [
            ("Win rate", f"{risk.win_rate:.2f}%"),
            ("Loss rate", f"{risk.loss_rate:.2f}%"),
            ("Average win", f"{risk.average_win:.2f}"),
            ("Average loss", f"{risk.average_loss:.2f}"),
            ("Std dev", f"{risk.std_dev:.2f}"),
            ("Sharpe", f"{risk.sharpe_ratio:.3f}"),
            ("Sortino", f"{risk.sortino_ratio:.3f}"),
            ("Calmar", f"{risk.calmar_ratio:.3f}"),
            ("Profit factor", f"{risk.profit_factor:.3f}"),
            ("Kelly", f"{risk.kelly_percentage:.2f}%"),
            ("Max drawdown", f"{risk.max_drawdown:.2f} ({risk.max_drawdown_pct:.1f}%)"),
            ("Avg drawdown", f"{risk.average_drawdown:.2f}"),
            ("Ulcer index", f"{risk.ulcer_index:.3f}"),
            ("Martin ratio", f"{risk.martin_ratio:.3f}"),
            ("Recovery factor", f"{risk.recovery_factor:.3f}"),
            ("Omega", f"{risk.omega_ratio:.3f}"),
            ("VaR 95", f"{risk.var_95:.2f}"),
            ("CVaR 95", f"{risk.cvar_95:.2f}"),
            ("Avg MAE / MFE", f"{risk.average_mae:.2f} / {risk.average_mfe:.2f}"),
            ("Avg R-multiple", f"{risk.average_r_multiple:.3f}"),
            ("Skewness", f"{risk.skewness:.3f}"),
            ("Kurtosis", f"{risk.kurtosis:.3f}"),
            ("Win streak", str(risk.max_win_streak)),
            ("Loss streak", str(risk.max_loss_streak)),
        ]
        for left, right in zip(cells[::2], cells[1::2]):
            tbl.add_row(left[0], left[1], right[0], right[1])
        return tbl

    def show_timeline(self, points: Sequence[TimelinePoint]) -> None:
        if not points:
            self.console.print("[dim]No timeline points.[/dim]")
            return

        tbl = Table(title="Timeline", box=box.ROUNDED)
        tbl.add_column("Round", justify="right", width=8)
        tbl.add_column("Alive", justify="right", width=8)
        tbl.add_column("Avg", justify="right", width=10)
        tbl.add_column("P25 / P75", justify="right", width=16)
        tbl.add_column("Bankrupt", justify="right", width=10)
        tbl.add_column("Target", justify="right", width=10)
        tbl.add_column("Volatility", justify="right", width=10)
        tbl.add_column("Sharpe", justify="right", width=8)

        for point in points:
            tbl.add_row(
                str(point.round),
                str(point.alive_count),
                f"{point.average_capital:.2f}",
                f"{point.p25_capital:.1f} / {point.p75_capital:.1f}",
                f"{point.bankrupt_rate:.1f}%",
                f"{point.target_reached_rate:.1f}%",
                f"{point.volatility:.3f}",
                f"{point.risk.sharpe_ratio:.2f}",
            )
        self.console.print(tbl)
