"""Default copilot action catalog for signal follow-ups.

Each entry resolves one of the opaque ids in signals/catalog.py into
something a trainer or coordinator can act on.
"""

from pydantic import BaseModel

from signals.catalog import CAUSE_ANALYSIS, INTERVENTION_PLAN, PARENT_MESSAGE


class CopilotAction(BaseModel):
    """An action the copilot can offer for a signal.

    Attributes:
        id: Catalog id referenced by Signal.recommended_action_ids.
        title: Short label shown on the action button.
        description: One sentence on what the action produces.
    """

    id: str
    title: str
    description: str = ""


DEFAULT_SIGNAL_ACTIONS: list[CopilotAction] = [
    CopilotAction(
        id=INTERVENTION_PLAN,
        title="Draft intervention plan",
        description="Propose concrete steps for the next sessions to recover attendance and engagement.",
    ),
    CopilotAction(
        id=CAUSE_ANALYSIS,
        title="Analyse likely causes",
        description="Summarise the evidence and list the most likely causes to check with the trainer.",
    ),
    CopilotAction(
        id=PARENT_MESSAGE,
        title="Write message to parents",
        description="Draft a short, friendly message to the student's guardians.",
    ),
]
