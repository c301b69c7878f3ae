from decision_pulse.domain.content import ContentItem, ContentReason, ScoredContent, UserContext
from decision_pulse.domain.decision import Decision, DecisionState, TrendData, VoteTally
from decision_pulse.domain.flash import DecisionEvent, FlashState

__all__ = [
    "ContentItem",
    "ContentReason",
    "ScoredContent",
    "UserContext",
    "Decision",
    "DecisionState",
    "TrendData",
    "VoteTally",
    "DecisionEvent",
    "FlashState",
]
