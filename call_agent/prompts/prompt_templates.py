"""Dynamic prompt construction for the language-model intent classifier."""

from call_agent.prompts.system_prompts import (
    ANSWER_RULES,
    BUSINESS_CONTEXT,
    INTENT_LABEL_RULES,
    LANGUAGE_NAMES,
)


def build_intent_prompt(service_names: list[str], language: str) -> str:
    """Build the compact classification instruction for one turn."""
    parts = [BUSINESS_CONTEXT.strip()]
    if service_names:
        parts.append("Services offered: " + ", ".join(service_names) + ".")
    parts.append(INTENT_LABEL_RULES.strip())
    parts.append(ANSWER_RULES.strip())
    parts.append(
        f"The caller speaks {LANGUAGE_NAMES.get(language, 'English')}. "
        "Write any REPLY in that language."
    )
    return "\n\n".join(parts)
