"""Default prompt texts for the writing assistant.

Every entry can be overridden through the JSON file referenced by
``PROMPT_CONFIG_PATH`` (see :mod:`scriptorium.services.llm`).
"""

from __future__ import annotations

DEFAULT_ACTION = "continue"

ASSIST_ACTIONS = {
    "continue": {
        "label": "Continue",
        "requires_text": False,
        "instruction": (
            "Continue the following scene naturally, keeping the style, tone and coherence "
            "with the characters and the world defined above. Write between 150 and 300 "
            "words. Do not add titles or explanations, only the narrative text picking up "
            "exactly where it ends."
        ),
    },
    "improve": {
        "label": "Improve",
        "requires_text": True,
        "instruction": (
            "Rewrite the following text applying ALL the necessary improvements: fix spelling "
            "and punctuation, improve the narrative rhythm, deepen the descriptions, adjust "
            "the characterisation so it matches the defined characters, reflect the "
            "atmosphere of the place, and clarify confusing sentences. Apply every change "
            "directly to the text without explaining anything. Return only the rewritten, "
            "improved text, keeping the author's voice."
        ),
    },
    "consistency": {
        "label": "Check consistency",
        "requires_text": True,
        "instruction": (
            "Review the following passage and point out any inconsistency with the defined "
            "characters, places or world rules. If everything is consistent, say so."
        ),
    },
    "alternative": {
        "label": "Alternative version",
        "requires_text": True,
        "instruction": (
            "Rewrite the following scene in a completely different way, keeping the same "
            "characters and events but changing the narrative focus, the point of view or "
            "the tone."
        ),
    },
    "tension": {
        "label": "Raise tension",
        "requires_text": True,
        "instruction": (
            "Rewrite, or suggest how to rewrite, the following passage to raise the tension "
            "and the pace without changing the main events."
        ),
    },
}

SYSTEM_PROMPT_TEMPLATE = (
    "You are a creative-writing assistant specialised in {genre}. You know the universe "
    "of this story in depth:\n\n"
    "{bible_context}\n\n"
    "Your job is to help the writer develop the story consistently with everything "
    "defined above. Always answer in the same language as the writer's text."
)

USER_PROMPT_TEMPLATE = "{instruction}\n\nCURRENT TEXT:\n{context}"
