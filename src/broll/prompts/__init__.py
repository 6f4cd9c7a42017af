"""Visual prompt template handling."""

from .template import (
    PLACEHOLDER,
    FALLBACK_SUMMARY,
    VISUAL_TEMPLATE,
    StructuredPrompt,
    RawTextPrompt,
    parse_visual_prompt,
    flatten_prompt,
    pretty_prompt,
    template_json,
)

__all__ = [
    "PLACEHOLDER",
    "FALLBACK_SUMMARY",
    "VISUAL_TEMPLATE",
    "StructuredPrompt",
    "RawTextPrompt",
    "parse_visual_prompt",
    "flatten_prompt",
    "pretty_prompt",
    "template_json",
]
