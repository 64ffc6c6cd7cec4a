"""WhatsApp message rendering."""

from .renderer import (
    generate_messages,
    message_previews,
    message_statistics,
    render_message,
    replace_template_variables,
    validate_messages,
)

__all__ = [
    "generate_messages",
    "message_previews",
    "message_statistics",
    "render_message",
    "replace_template_variables",
    "validate_messages",
]
