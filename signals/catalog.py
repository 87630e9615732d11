"""Recommended copilot actions per signal type.

Order matters: the first id is the action the copilot offers first. The ids
are opaque to the engine; copilot/actions.py resolves them to titles.
"""

from schemas.signal import SignalType

INTERVENTION_PLAN = "signal_intervention_plan"
CAUSE_ANALYSIS = "signal_cause_analysis"
PARENT_MESSAGE = "signal_parent_message"

RECOMMENDED_ACTIONS: dict[SignalType, tuple[str, ...]] = {
    SignalType.ATTENDANCE_DROP: (INTERVENTION_PLAN, CAUSE_ANALYSIS, PARENT_MESSAGE),
    SignalType.REPEATED_ABSENCE: (PARENT_MESSAGE, INTERVENTION_PLAN),
    SignalType.REPORT_DELAY: (CAUSE_ANALYSIS, INTERVENTION_PLAN),
    SignalType.UNUSUAL_PRESENCE_PATTERN: (CAUSE_ANALYSIS, INTERVENTION_PLAN),
    SignalType.ENGAGEMENT_RISK: (INTERVENTION_PLAN, PARENT_MESSAGE, CAUSE_ANALYSIS),
}
