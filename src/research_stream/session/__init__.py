"""Conversation and per-response lifecycle."""

from research_stream.session.conversation import Conversation
from research_stream.session.followups import suggest_follow_ups
from research_stream.session.messages import AssistantMessage, Message, UserMessage
from research_stream.session.response import ResponseStream
from research_stream.session.workflow import StepPhase, WorkflowStep, WorkflowTracker

__all__ = [
    "Conversation",
    "ResponseStream",
    "AssistantMessage",
    "UserMessage",
    "Message",
    "WorkflowStep",
    "WorkflowTracker",
    "StepPhase",
    "suggest_follow_ups",
]
