"""Block Kit payloads."""

import config


def message_modal(text: str, help_text: str) -> dict:
    """Modal view showing a converted post plus a hint underneath."""
    return {
        "type": "modal",
        "title": {"type": "plain_text", "text": config.ASSISTANT_NAME},
        "blocks": [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": "Here's that post in your timezone:",
                    "emoji": True,
                },
            },
            {"type": "section", "text": {"type": "mrkdwn", "text": text}},
            {"type": "divider"},
            {"type": "context", "elements": [{"type": "mrkdwn", "text": help_text}]},
        ],
    }
