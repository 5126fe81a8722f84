"""HTML pages shown after a visitor follows a demo confirmation link."""

from __future__ import annotations

import html

SITE_URL = "https://tenxdev.ai"

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title} - tenxdev.ai</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; display: flex; justify-content: center; align-items: center; min-height: 100vh; margin: 0; background: {background}; }}
    .card {{ background: white; padding: 48px; border-radius: 16px; text-align: center; max-width: 400px; box-shadow: 0 10px 40px rgba(0,0,0,0.2); }}
    h1 {{ color: #1f2937; margin: 0 0 16px; font-size: 24px; }}
    p {{ color: #6b7280; margin: 0 0 8px; line-height: 1.6; }}
    a {{ color: #667eea; text-decoration: none; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{title}</h1>
    {body}
    <p style="margin-top: 24px;"><a href="{site}">{link_text}</a></p>
  </div>
</body>
</html>
"""

_OK_BACKGROUND = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"
_WARN_BACKGROUND = "linear-gradient(135deg, #f59e0b 0%, #ef4444 100%)"
_ERROR_BACKGROUND = "linear-gradient(135deg, #ef4444 0%, #dc2626 100%)"


def _render(title: str, paragraphs: list[str], background: str, link_text: str) -> str:
    body = "\n    ".join(f"<p>{html.escape(p)}</p>" for p in paragraphs)
    return _PAGE.format(
        title=html.escape(title),
        body=body,
        background=background,
        site=SITE_URL,
        link_text=html.escape(link_text),
    )


def confirmed_page(when: str) -> str:
    return _render(
        "Demo Confirmed!",
        [
            "You're all set for your demo with tenxdev.ai.",
            when,
            "We'll send you a reminder before your demo.",
        ],
        _OK_BACKGROUND,
        "Back to tenxdev.ai",
    )


def already_confirmed_page() -> str:
    return _render(
        "Already Confirmed",
        ["This demo was already confirmed.", "See you soon!"],
        _OK_BACKGROUND,
        "Back to tenxdev.ai",
    )


def expired_page() -> str:
    return _render(
        "Link Expired",
        ["This confirmation link has expired.", "The demo slot may have been released."],
        _WARN_BACKGROUND,
        "Book a New Demo",
    )


def error_page() -> str:
    return _render(
        "Something Went Wrong",
        ["We couldn't process your confirmation.", "Please contact us at hello@tenxdev.ai"],
        _ERROR_BACKGROUND,
        "Back to tenxdev.ai",
    )
