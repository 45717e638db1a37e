"""Pure queue rules: pricing, ordering, the job state machine and tokens."""

__all__ = [
    "ordering",
    "pricing",
    "state_machine",
    "tokens",
]
