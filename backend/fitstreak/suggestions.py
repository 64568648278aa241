"""
Workout suggestions. The model is an opaque text generator; this module owns
the prompt, the response parsing and the canned fallback.
"""
import logging
import re
from typing import Callable, Iterable, Mapping, Optional

from google import genai

from .engine.streak import parse_timestamp
from .errors import SuggestionUnavailable

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], str]

FALLBACK_SUGGESTION = {
    "suggestion": "Try a 30-minute HIIT workout today to boost your metabolism and build endurance.",
    "goals": [
        "Complete 3 HIIT workouts this week",
        "Increase workout duration by 5 minutes each session",
    ],
}

GOAL_MARKER_RE = re.compile(r"^\d+\.\s*|^-\s*")

PROMPT_TEMPLATE = """\
Based on the following user fitness data, provide a personalized workout suggestion for today.
Include a brief explanation of why this workout is beneficial and list 2 specific fitness goals
that would be appropriate for this user.

Recent Activities:
{activities}

Current Streak: {streak} days
Total Workouts: {total}

Format your response with:
1. A concise workout suggestion (1-2 sentences)
2. A brief explanation (1-2 sentences)
3. Two specific, achievable fitness goals

Keep your response under 150 words total. DO NOT include any headers, introductions, or conclusions.
"""


def _activity_line(activity: Mapping) -> str:
    moment = parse_timestamp(activity.get("date"))
    when = moment.date().isoformat() if moment else "today"
    return f"- {activity.get('type')} ({activity.get('duration')} minutes) on {when}"


def build_prompt(recent_activities: Iterable[Mapping], current_streak: int, total_workouts: int) -> str:
    lines = [_activity_line(a) for a in recent_activities] or ["- none yet"]
    return PROMPT_TEMPLATE.format(
        activities="\n".join(lines),
        streak=current_streak,
        total=total_workouts,
    )


def parse_suggestion(text: str) -> dict:
    """
    First line is the suggestion, the last two lines are goals.
    Short responses are joined into the suggestion with no goals.
    """
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if len(lines) >= 3:
        goals = [GOAL_MARKER_RE.sub("", line).strip() for line in lines[-2:]]
        return {"suggestion": lines[0], "goals": goals}
    return {"suggestion": " ".join(lines), "goals": []}


def generate_suggestion(
    recent_activities: Iterable[Mapping],
    current_streak: int,
    total_workouts: int,
    generate_text: Optional[TextGenerator] = None,
) -> dict:
    if generate_text is None:
        logger.info("No suggestion generator configured; using fallback suggestion")
        return {"suggestion": FALLBACK_SUGGESTION["suggestion"], "goals": list(FALLBACK_SUGGESTION["goals"])}

    prompt = build_prompt(recent_activities, current_streak, total_workouts)
    try:
        text = generate_text(prompt)
    except Exception as e:
        logger.error("Suggestion generation failed: %s", e)
        raise SuggestionUnavailable("Failed to generate fitness suggestion") from e
    return parse_suggestion(text)


def make_gemini_generator(api_key: str, model: str) -> Optional[TextGenerator]:
    """Return a text generator backed by Gemini, or None without an API key."""
    if not api_key:
        return None
    client = genai.Client(api_key=api_key)

    def generate(prompt: str) -> str:
        response = client.models.generate_content(model=model, contents=prompt)
        return response.text or ""

    return generate
