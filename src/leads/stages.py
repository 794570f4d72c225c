"""Stage transition table for leads.

Happy path: potential -> demo -> proposal -> negotiation -> closed_won.
From any open stage a lead may be moved to any defined stage (skip ahead,
back to potential, or closed_lost). Closed stages accept nothing.
"""
from leads.exceptions import InvalidTransition
from leads.models import Stage

PIPELINE = (
    Stage.POTENTIAL,
    Stage.DEMO,
    Stage.PROPOSAL,
    Stage.NEGOTIATION,
    Stage.CLOSED_WON,
)
TERMINAL_STAGES = frozenset({Stage.CLOSED_WON, Stage.CLOSED_LOST})
OPEN_STAGES = tuple(s for s in Stage.values if s not in TERMINAL_STAGES)


def is_terminal(stage) -> bool:
    return stage in TERMINAL_STAGES


def next_stage(stage):
    """Suggested single step forward, or ``None`` for closed leads."""
    if stage in TERMINAL_STAGES or stage not in PIPELINE:
        return None
    return PIPELINE[PIPELINE.index(stage) + 1]


def allowed_targets(stage) -> list:
    if stage in TERMINAL_STAGES:
        return []
    return list(Stage.values)


def check_transition(current, target) -> str:
    """Return *target* as a stage value, or raise :class:`InvalidTransition`."""
    if target not in Stage.values:
        raise InvalidTransition(
            f"'{target}' is not a pipeline stage.",
            errors={"stage": f"Choose one of: {', '.join(Stage.values)}."},
        )
    if current in TERMINAL_STAGES:
        raise InvalidTransition(
            f"Lead is already {Stage(current).label.lower()}; its stage can no longer change.",
        )
    return Stage(target).value
