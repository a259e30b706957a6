"""
Shared email layout for Volunteer Hub.

All templates use `wrap_html()` so outgoing email shares one header/footer.

Usage:
    from services.communications_service.templates.base import wrap_html, cta_button

    html = wrap_html(
        title="You're invited",
        body_html="<p>Hi Sam, ...</p>" + cta_button("Accept", url),
    )
"""

from html import escape

# ─── Color presets ────────────────────────────────────────────────────
GRADIENT_TEAL = "linear-gradient(135deg, #0d9488 0%, #0f766e 100%)"
GRADIENT_GREEN = "linear-gradient(135deg, #10b981 0%, #059669 100%)"
GRADIENT_AMBER = "linear-gradient(135deg, #f59e0b 0%, #d97706 100%)"
GRADIENT_RED = "linear-gradient(135deg, #ef4444 0%, #b91c1c 100%)"


def wrap_html(
    title: str,
    body_html: str,
    subtitle: str = "",
    header_gradient: str = GRADIENT_TEAL,
    preheader: str = "",
) -> str:
    """Wrap inner content in the standard Volunteer Hub email layout.

    Args:
        title: Heading shown in the coloured header banner.
        body_html: The main email content (already-formatted HTML).
        subtitle: Smaller text below the title in the header.
        header_gradient: CSS gradient for the header background.
        preheader: Hidden preview text shown in inbox list view.
    """
    subtitle_html = (
        f'<p style="margin: 8px 0 0 0; opacity: 0.9; font-size: 15px;">{subtitle}</p>'
        if subtitle
        else ""
    )
    preheader_html = (
        f'<span style="display:none;max-height:0;overflow:hidden;">{preheader}</span>'
        if preheader
        else ""
    )

    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{title}</title>
</head>
<body style="margin:0;padding:0;background:#f8fafc;font-family:Arial,Helvetica,sans-serif;color:#0f172a;">
    {preheader_html}
    <div style="max-width:600px;margin:0 auto;padding:24px 12px;">
        <div style="background:{header_gradient};color:#ffffff;padding:28px 24px;border-radius:12px 12px 0 0;">
            <h1 style="margin:0;font-size:22px;">{title}</h1>
            {subtitle_html}
        </div>
        <div style="background:#ffffff;padding:24px;border-radius:0 0 12px 12px;line-height:1.6;">
            {body_html}
        </div>
        <p style="text-align:center;font-size:12px;color:#64748b;margin-top:16px;">
            Volunteer Hub &middot; You are receiving this because of your volunteer account.
        </p>
    </div>
</body>
</html>"""


# ─── Helper functions ─────────────────────────────────────────────────


def detail_box(items: dict[str, str], accent_color: str = "#0d9488") -> str:
    """Render a key-value detail box. Empty values are skipped."""
    rows = "".join(
        f"<div><strong>{escape(label)}:</strong> {escape(str(value))}</div>"
        for label, value in items.items()
        if value
    )
    return (
        f'<div style="border-left:4px solid {accent_color};background:#f1f5f9;'
        f'padding:12px 16px;margin:16px 0;">{rows}</div>'
    )


def cta_button(label: str, url: str, color: str = "#0d9488") -> str:
    """Render a centered call-to-action button."""
    return (
        f'<div style="text-align:center;margin:24px 0;">'
        f'<a href="{url}" style="background-color:{color};color:#ffffff;padding:12px 24px;'
        f'border-radius:8px;text-decoration:none;display:inline-block;">{escape(label)}</a></div>'
    )


def info_box(
    content: str,
    bg_color: str = "#f0fdf4",
    border_color: str = "#22c55e",
    title: str = "",
) -> str:
    """Render a coloured info box."""
    title_html = f"<strong>{escape(title)}</strong><br/>" if title else ""
    return (
        f'<div style="background:{bg_color};border-left:4px solid {border_color};'
        f'padding:16px 20px;margin:20px 0;">{title_html}{content}</div>'
    )
