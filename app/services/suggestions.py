"""Example prompts offered next to the prompt box, grouped by theme."""

from typing import Dict, List

PROMPT_SUGGESTIONS: Dict[str, Dict[str, object]] = {
    "general": {
        "label": "General",
        "suggestions": [
            "Bold red background with white text",
            "Minimalist design with gradient",
            "Dark theme with neon accents",
            "Professional business style",
        ],
    },
    "gaming": {
        "label": "Gaming",
        "suggestions": [
            "Epic gaming thumbnail with fire effects",
            "Minecraft style thumbnail",
            "Fortnite victory royale design",
            "Retro pixel art style",
        ],
    },
    "business": {
        "label": "Business",
        "suggestions": [
            "Professional corporate design",
            "Clean modern business card",
            "Startup pitch deck style",
            "Financial growth chart theme",
        ],
    },
    "creative": {
        "label": "Creative",
        "suggestions": [
            "Artistic watercolor background",
            "Abstract geometric patterns",
            "Vintage retro aesthetic",
            "Futuristic sci-fi design",
        ],
    },
}


def list_prompt_categories() -> List[dict]:
    return [
        {"key": key, "label": category["label"], "suggestions": list(category["suggestions"])}
        for key, category in PROMPT_SUGGESTIONS.items()
    ]
