from ruinsim.dashboard.terminal import TerminalDashboard

__all__ = ["TerminalDashboard"]
