"""Locked message intents.

Users never send free-form messages: every message is one of these templates,
with free text allowed only inside declared placeholder fields.
Template text changes need a safety review.
"""
from __future__ import annotations

from typing import Tuple

from sprout_engines.messaging.models import (
    ChoiceVariable,
    IntentDirection,
    IntentId,
    MessageIntent,
    NumberVariable,
    TextVariable,
)

DEFAULT_INTENTS: Tuple[MessageIntent, ...] = (
    MessageIntent(
        intent=IntentId.ASK_ABOUT_JOB,
        label="Ask About Job",
        description="Express interest and request more details about the job",
        template="Hi, I'm interested in this job. Could you share a bit more detail about what's needed?",
        direction=IntentDirection.YOUTH_TO_ADULT,
    ),
    MessageIntent(
        intent=IntentId.CONFIRM_AVAILABILITY,
        label="Confirm Availability",
        description="Let them know when you're available",
        template="I'm available on {days} at {time}. Does that work for you?",
        variables=(
            TextVariable(name="days", label="Day(s)", max_length=50, placeholder="e.g., Monday, Tuesday and Wednesday"),
            TextVariable(name="time", label="Time", max_length=30, placeholder="e.g., 3pm or morning"),
        ),
    ),
    MessageIntent(
        intent=IntentId.CONFIRM_TIME_DATE,
        label="Confirm Time & Date",
        description="Confirm the scheduled time and date",
        template="Just to confirm, the job is scheduled for {date} at {time}.",
        variables=(
            TextVariable(name="date", label="Date", max_length=30, placeholder="e.g., Monday 15th January"),
            TextVariable(name="time", label="Time", max_length=20, placeholder="e.g., 2pm"),
        ),
    ),
    MessageIntent(
        intent=IntentId.CONFIRM_LOCATION,
        label="Confirm Location",
        description="Ask for location confirmation",
        template="Could you confirm the location for this job?",
    ),
    MessageIntent(
        intent=IntentId.ASK_CLARIFICATION,
        label="Ask a Question",
        description="Ask a quick question about the job",
        template="I have a quick question about the job: {question}.",
        variables=(
            TextVariable(name="question", label="Your Question", max_length=200, placeholder="What do I need to bring?"),
        ),
    ),
    MessageIntent(
        intent=IntentId.CONFIRM_COMPLETION,
        label="Confirm Completion",
        description="Let them know you've finished the job",
        template="I've completed the job as agreed. Please let me know if anything else is needed.",
        direction=IntentDirection.YOUTH_TO_ADULT,
    ),
    MessageIntent(
        intent=IntentId.UNABLE_TO_PROCEED,
        label="Unable to Proceed",
        description="Politely decline or withdraw from the job",
        template="I'm no longer able to take this job. Thank you for understanding.",
        direction=IntentDirection.YOUTH_TO_ADULT,
    ),
    MessageIntent(
        intent=IntentId.RUNNING_LATE,
        label="Running Late",
        description="Let them know you'll be a little late",
        template="I'm running about {minutes} minutes late.",
        variables=(
            NumberVariable(name="minutes", label="Minutes", min_value=1, max_value=240, placeholder="e.g., 10"),
        ),
    ),
    MessageIntent(
        intent=IntentId.CONFIRM_ARRIVAL,
        label="Confirm Arrival",
        description="Let them know you've arrived",
        template="I've arrived and I'm waiting {where}.",
        variables=(
            ChoiceVariable(
                name="where",
                label="Where are you?",
                options=("at the front door", "outside", "at the reception"),
            ),
        ),
    ),
)
