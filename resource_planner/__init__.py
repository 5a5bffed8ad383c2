"""Resource planner: weekly allocation grid and week rollover engine."""
