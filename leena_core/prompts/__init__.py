"""Persona prompt rendering.

Both relays share one persona template (`persona_system.md`); the knobs that
differ between them are passed as PersonaOptions.
"""

from dataclasses import dataclass
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent
PERSONA_TEMPLATE = "persona_system.md"

SEARCH_HINT = (
    "If you need to search the web for mental health resources, use the web_search tool. "
    "Your search queries should be as specific as possible; ask the user for additional details if needed."
)
LIST_RULE = (
    "7. Avoid using bulleted/numbered/hyphenated lists, as they don't sound natural in conversation."
)


@dataclass(frozen=True)
class PersonaOptions:
    """Parameters of the persona template.

    - max_reply_chars: soft reply length hint.
    - avoid_lists: ask the model not to answer with lists.
    - use_emoji_hints: sprinkle emoji into the style examples.
    - enable_search: mention the web_search tool.
    """

    max_reply_chars: int = 100
    avoid_lists: bool = False
    use_emoji_hints: bool = True
    enable_search: bool = False


CHAT_PERSONA = PersonaOptions()
TOOL_PERSONA = PersonaOptions(max_reply_chars=150, avoid_lists=True, use_emoji_hints=False, enable_search=True)


def load_template(name: str = PERSONA_TEMPLATE) -> str:
    return (PROMPTS_DIR / name).read_text(encoding="utf-8")


def render_persona(options: PersonaOptions = CHAT_PERSONA) -> str:
    """Render the persona system prompt for the given options."""

    emoji = options.use_emoji_hints
    text = load_template().format(
        max_reply_chars=options.max_reply_chars,
        length_exception=(
            "you're sharing important information" if options.enable_search else "it's warranted"
        ),
        list_rule=f"{LIST_RULE}\n" if options.avoid_lists else "",
        emoji_question=" 🤔" if emoji else "",
        emoji_humor=" 😊" if emoji else "",
        emoji_support=" 💪" if emoji else "",
        search_hint=f"\n\n{SEARCH_HINT}" if options.enable_search else "",
    )
    return text.rstrip("\n")
