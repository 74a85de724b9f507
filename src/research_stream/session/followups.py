"""Heuristic follow-up prompts offered after an answer."""

MAX_FOLLOW_UPS = 4

_KEYWORD_PROMPTS: list[tuple[tuple[str, ...], tuple[str, ...]]] = [
    (
        ("legal", "case"),
        (
            "Can you provide more details about the legal implications?",
            "What are the key precedents mentioned?",
        ),
    ),
    (
        ("analysis", "analyze"),
        (
            "Can you expand on the analysis methodology?",
            "What are the main conclusions?",
        ),
    ),
    (
        ("summary", "summarize"),
        (
            "Can you provide more specific examples?",
            "What are the key takeaways?",
        ),
    ),
]

GENERIC_FOLLOW_UPS = (
    "Can you provide more details on this topic?",
    "What are the key implications?",
    "Can you expand on this further?",
)


def suggest_follow_ups(text: str | None) -> list[str]:
    """Up to four follow-up questions keyed off words in ``text``."""
    if not text:
        return []
    lowered = text.lower()
    suggestions: list[str] = []
    for keywords, prompts in _KEYWORD_PROMPTS:
        if any(k in lowered for k in keywords):
            suggestions.extend(prompts)
    if not suggestions:
        suggestions.extend(GENERIC_FOLLOW_UPS)
    return suggestions[:MAX_FOLLOW_UPS]
