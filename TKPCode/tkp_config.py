"""
Centralized tabu search configuration module.

Purpose:
- Collect every run-level knob of the TKP tabu search (iteration budget, tabu
  memory size, neighbourhood size, strategy toggles, aspiration threshold,
  repair budget, parallel filter) in one dataclass.
- Keep this module free of runtime imports (SolutionState, TKPInstance, ...)
  to avoid circular imports.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass
class TabuConfig:
    # --------------------------
    # Meta / run control
    # --------------------------
    SEED: int = 15926535
    LOG_LEVEL: str = "INFO"           # DEBUG / INFO / WARN / ERROR
    VERBOSE: bool = True

    # --------------------------
    # Search budget
    # --------------------------
    ITERATIONS: int = 1000
    MAX_RUNTIME: Optional[float] = None      # seconds, CLI only; the core never stops on time

    # --------------------------
    # Tabu memory / neighbourhood
    # --------------------------
    TABU_CAPACITY: int = 50
    NEIGHBORHOOD_SIZE: int = 50

    # Aspiration: an accepted move that beats the previous best by more than
    # this many profit units is not recorded in the tabu memory
    ASPIRATION_THRESHOLD: int = 50

    # --------------------------
    # Strategy toggles (random flip-repair is always enabled)
    # --------------------------
    ENABLE_COST_BENEFIT: bool = True
    ENABLE_SLACK_FILL: bool = True

    # Number of best-ranked eligible orders the greedy strategies draw from
    GREEDY_TOP_K: int = 5

    # --------------------------
    # Random flip-repair budget
    # --------------------------
    REPAIR_MAX_ATTEMPTS: int = 100
    REPAIR_MIN_STEPS: int = 5

    # --------------------------
    # Candidate filtering
    # --------------------------
    PARALLEL_FILTER: bool = False
    MAX_FILTER_WORKERS: int = 4

    # Assert incremental == recomputed state after every iteration (slow)
    VALIDATE_EVERY_ITERATION: bool = False

    # How many selected indices are handed to the improvement sink
    IMPROVEMENT_SAMPLE_SIZE: int = 10

    # --------------------------
    # Logging / persistence
    # --------------------------
    LOG_DIR: Optional[str] = "logs-tkp"
    TRACKER_CSV: Optional[str] = None
    TRACKER_PRINT_EVERY: int = 100

    # --------------------------
    # Exact model (comparison only)
    # --------------------------
    EXACT_TIME_LIMIT: float = 900.0
    EXACT_GAP_LIMIT: float = 0.0
    EXACT_OUTPUT_FLAG: int = 0

    # --------------------------
    # Helper instance methods
    # --------------------------
    def get_search_params(self) -> Dict[str, Any]:
        """Return the keyword arguments understood by tabu_search()."""
        return {
            "iterations": self.ITERATIONS,
            "tabu_capacity": self.TABU_CAPACITY,
            "neighborhood_size": self.NEIGHBORHOOD_SIZE,
            "enable_cost_benefit": self.ENABLE_COST_BENEFIT,
            "enable_slack_fill": self.ENABLE_SLACK_FILL,
            "aspiration_threshold": self.ASPIRATION_THRESHOLD,
        }

    def validate(self) -> None:
        """Raise ValueError on values the search cannot run with."""
        if self.ITERATIONS < 0:
            raise ValueError(f"ITERATIONS must be >= 0, got {self.ITERATIONS}")
        if self.TABU_CAPACITY < 0:
            raise ValueError(f"TABU_CAPACITY must be >= 0, got {self.TABU_CAPACITY}")
        if self.NEIGHBORHOOD_SIZE < 1:
            raise ValueError(f"NEIGHBORHOOD_SIZE must be >= 1, got {self.NEIGHBORHOOD_SIZE}")
        if self.ASPIRATION_THRESHOLD < 0:
            raise ValueError(f"ASPIRATION_THRESHOLD must be >= 0, got {self.ASPIRATION_THRESHOLD}")
        if self.GREEDY_TOP_K < 1:
            raise ValueError(f"GREEDY_TOP_K must be >= 1, got {self.GREEDY_TOP_K}")
        if self.REPAIR_MAX_ATTEMPTS < 1:
            raise ValueError(f"REPAIR_MAX_ATTEMPTS must be >= 1, got {self.REPAIR_MAX_ATTEMPTS}")
        if self.MAX_FILTER_WORKERS < 1:
            raise ValueError(f"MAX_FILTER_WORKERS must be >= 1, got {self.MAX_FILTER_WORKERS}")

    def update_from_dict(self, cfg: Dict[str, Any]):
        """
        Update configuration fields from a dict (in-place).
        Unknown keys are rejected so that typos in user configs surface early.
        """
        for k, v in cfg.items():
            if not hasattr(self, k):
                raise KeyError(f"Unknown configuration key: {k}")
            setattr(self, k, v)

    def copy_with(self, **overrides) -> "TabuConfig":
        """Return a new config with the given fields replaced."""
        out = TabuConfig(**self.to_dict())
        out.update_from_dict(overrides)
        return out

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the main configuration to a plain dict (shallow for convenience)."""
        out = {}
        for name, val in self.__dict__.items():
            out[name] = val
        return out


# Module-level default config instance for easy import/use
default_config = TabuConfig()
