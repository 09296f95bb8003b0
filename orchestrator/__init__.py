"""Mix generation orchestration."""
from .middleware import select_middlewares
from .mix import MixRun, MixRunReport, run_mix_generator
from .planner import MixBuildPlanner

__all__ = ["MixBuildPlanner", "MixRun", "MixRunReport", "run_mix_generator", "select_middlewares"]
