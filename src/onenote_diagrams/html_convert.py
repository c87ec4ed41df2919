"""Build the HTML and JSON payloads the OneNote API expects for diagram pages."""

import json

import markdown


def diagram_source_markdown(title: str, markup: str, description: str | None = None) -> str:
    """Lay out the placeholder page text: title, description, Mermaid source.

    The source goes into a fenced block long enough that backtick runs
    inside the markup cannot close it early.
    """
    fence = "```"
    while fence in markup:
        fence += "`"

    parts = [f"# {_escape_html(title)}"]
    if description:
        parts.append(description)
    parts.append("## Diagram Source (Mermaid)")
    parts.append(f"{fence}\n{markup}\n{fence}")
    return "\n\n".join(parts)


def markdown_to_onenote_html(title: str, md_content: str) -> str:
    """Convert Markdown to OneNote-compatible HTML for page creation.

    Wraps content in the required HTML structure for the OneNote API.
    """
    body_html = markdown.markdown(
        md_content,
        extensions=["tables", "fenced_code"],
    )

    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"  <head><title>{_escape_html(title)}</title></head>\n"
        f"  <body>{body_html}</body>\n"
        "</html>"
    )


def placeholder_page_html(title: str, markup: str, description: str | None = None) -> str:
    """Page document created before the rendered image is attached."""
    return markdown_to_onenote_html(title, diagram_source_markdown(title, markup, description))


def image_reference_html(part_name: str, alt: str, media_type: str) -> str:
    """An <img> that points at a named part of a multipart request."""
    return (
        f'<img src="name:{_escape_html(part_name)}" '
        f'alt="{_escape_html(alt)}" '
        f'data-src-type="{_escape_html(media_type)}"/>'
    )


def make_patch_content(action: str, html_content: str) -> str:
    """Create a JSON PATCH body for updating a OneNote page.

    Args:
        action: 'append', 'replace', or 'insert'
        html_content: HTML content for the patch

    Returns:
        Compact JSON string for the PATCH request body, non-ASCII kept as-is.
    """
    patch = [
        {
            "target": "body",
            "action": action,
            "content": html_content,
        }
    ]
    return json.dumps(patch, separators=(",", ":"), ensure_ascii=False)


def _escape_html(text: str) -> str:
    """Escape HTML special characters in text."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )
