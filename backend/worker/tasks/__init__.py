from .analyze import analyze_damage
from .watchdog import watchdog_stuck_analyses

__all__ = ["analyze_damage", "watchdog_stuck_analyses"]
