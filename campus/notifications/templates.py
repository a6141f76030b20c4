"""
Message templates for reminder and system notifications.

Templates live in messages.yaml; every reminder type has a "title" and a
"message" entry using str.format placeholders.
"""

from pathlib import Path

import yaml


_templates: dict | None = None


def load_templates() -> dict:
    """Load messages.yaml once and cache it for the process."""
    global _templates
    if _templates is None:
        yaml_path = Path(__file__).parent / "messages.yaml"
        with open(yaml_path, encoding="utf-8") as f:
            _templates = yaml.safe_load(f)
    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Fill a template's placeholders.

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(message_type: str, field: str, context: dict) -> str:
    """Render one field ("title" or "message") of a message type."""
    return render_message(load_templates()[message_type][field], context)


def render_notification(message_type: str, context: dict) -> tuple[str, str]:
    """Render the (title, message) pair of a message type."""
    return (
        get_message(message_type, "title", context),
        get_message(message_type, "message", context),
    )


def describe_days(days: int) -> str:
    """Human phrase for a whole-day distance: "today", "tomorrow", "in 3 days"."""
    when = load_templates()["when"]
    if days <= 0:
        return when["today"]
    if days == 1:
        return when["tomorrow"]
    return render_message(when["days"], {"days": days})
