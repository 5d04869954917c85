"""
Line-oriented Markdown to HTML/DOCX conversion for exports.

This is deliberately not a Markdown parser: each line is classified on its
own and anything unrecognized becomes a plain paragraph.
"""
import html
import re
from io import BytesIO
from typing import Optional

from docx import Document as DocxDocument

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")

PROPOSAL_STYLES = """
body { font-family: 'Arial', sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 40px 20px; }
h1 { color: #15803d; font-size: 28px; margin-bottom: 20px; border-bottom: 3px solid #15803d; padding-bottom: 10px; }
h2 { color: #15803d; font-size: 22px; margin-top: 30px; margin-bottom: 15px; }
h3 { color: #374151; font-size: 18px; margin-top: 20px; margin-bottom: 10px; }
p { margin-bottom: 15px; }
ul { margin-bottom: 15px; }
li { margin-bottom: 5px; }
hr { border: none; border-top: 1px solid #e5e7eb; margin: 30px 0; }
"""

PITCH_DECK_STYLES = """
body { font-family: 'Segoe UI', Arial, sans-serif; color: #1A1A1A; margin: 0; padding: 0; }
.slide { width: 1000px; height: 562px; padding: 40px; box-sizing: border-box; position: relative; page-break-after: always; }
.slide:last-child { page-break-after: avoid; }
h1 { font-size: 36px; font-weight: 700; color: #0B2B5B; margin: 0 0 16px; }
h2 { font-size: 28px; font-weight: 600; color: #0B2B5B; margin: 0 0 12px; }
h3 { font-size: 22px; font-weight: 600; color: #0B2B5B; margin: 0 0 8px; }
p, li { font-size: 18px; line-height: 26px; margin: 0 0 6px; }
.title-slide { text-align: center; background: linear-gradient(135deg, #15803d 0%, #84cc16 100%); color: white; }
.title-slide h1 { color: white; font-size: 64px; margin-bottom: 20px; }
.title-slide .tagline { font-size: 32px; margin-bottom: 60px; opacity: 0.9; }
.slide-number { position: absolute; bottom: 30px; right: 30px; font-size: 18px; color: #84cc16; font-weight: bold; }
@media print { .slide { margin: 0; border-radius: 0; } }
"""


def sanitize_filename(title: Optional[str], default: str = "proposal") -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", title or default)


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def _is_bold_line(line: str) -> bool:
    return line.startswith("**") and line.endswith("**")


def format_content_for_pdf(content: str) -> str:
    parts = []
    for line in content.split("\n"):
        if line.startswith("# "):
            parts.append(f"<h1>{_text(line[2:])}</h1>")
        elif line.startswith("## "):
            parts.append(f"<h2>{_text(line[3:])}</h2>")
        elif line.startswith("### "):
            parts.append(f"<h3>{_text(line[4:])}</h3>")
        elif _is_bold_line(line):
            parts.append(f"<p><strong>{_text(line.replace('**', ''))}</strong></p>")
        elif line.startswith("- "):
            parts.append(f"<li>{_text(line[2:])}</li>")
        elif line.startswith("---"):
            parts.append("<hr>")
        elif not line.strip():
            parts.append("<br>")
        else:
            parts.append(f"<p>{_text(line)}</p>")
    return "".join(parts)


def _title_slide(startup_name: str, tagline: Optional[str], body: str = "") -> str:
    return (
        '<div class="slide title-slide">'
        f"<h1>{_text(startup_name)}</h1>"
        f'<div class="tagline">{_text(tagline or "")}</div>'
        f"{body}"
        '<div class="slide-number">1</div>'
        "</div>"
    )


def format_pitch_deck_for_pdf(content: str, startup_name: str, tagline: Optional[str] = None) -> str:
    """Slide HTML for a stored deck.

    Decks generated for PDF already contain `<div class="slide"` markup and only
    get a title slide prepended. Older Markdown decks are split on `## Slide`
    headings; the first such block becomes the title slide.
    """
    if '<div class="slide"' in content:
        return _title_slide(startup_name, tagline) + content

    slides: list[list[str]] = []
    for line in content.split("\n"):
        if line.startswith("## Slide"):
            slides.append([])
            continue
        if not slides:
            continue
        if _is_bold_line(line):
            slides[-1].append(f"<h2>{_text(line.replace('**', ''))}</h2>")
        elif line.startswith("• "):
            slides[-1].append(f"<li>{_text(line[2:])}</li>")

    if not slides:
        # No slide headings at all: title slide plus the text as one slide
        return _title_slide(startup_name, tagline) + (
            f'<div class="slide">{format_content_for_pdf(content)}<div class="slide-number">2</div></div>'
        )

    rendered = []
    for number, items in enumerate(slides, start=1):
        body = _group_list_items(items)
        if number == 1:
            rendered.append(_title_slide(startup_name, tagline, body))
        else:
            rendered.append(f'<div class="slide">{body}<div class="slide-number">{number}</div></div>')
    return "".join(rendered)


def _group_list_items(items: list[str]) -> str:
    """Wrap consecutive <li> runs in a <ul>."""
    out = []
    in_list = False
    for item in items:
        is_li = item.startswith("<li>")
        if is_li and not in_list:
            out.append("<ul>")
            in_list = True
        elif not is_li and in_list:
            out.append("</ul>")
            in_list = False
        out.append(item)
    if in_list:
        out.append("</ul>")
    return "".join(out)


def _html_page(title: str, styles: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{_text(title)}</title><style>{styles}</style></head>"
        f"<body>{body}</body></html>"
    )


def build_proposal_html(content: str, title: Optional[str]) -> str:
    return _html_page(title or "Proposal", PROPOSAL_STYLES, format_content_for_pdf(content))


def build_pitch_deck_html(content: str, startup_name: str, tagline: Optional[str]) -> str:
    return _html_page(
        f"{startup_name} Pitch Deck",
        PITCH_DECK_STYLES,
        format_pitch_deck_for_pdf(content, startup_name, tagline),
    )


def build_proposal_docx(content: str) -> bytes:
    doc = DocxDocument()
    for line in content.split("\n"):
        if line.startswith("# "):
            doc.add_heading(line[2:], level=1)
        elif line.startswith("## "):
            doc.add_heading(line[3:], level=2)
        elif line.startswith("### "):
            doc.add_heading(line[4:], level=3)
        elif _is_bold_line(line):
            doc.add_paragraph().add_run(line.replace("**", "")).bold = True
        elif line.startswith("- "):
            doc.add_paragraph(line[2:], style="List Bullet")
        elif line.strip() and not line.startswith("---"):
            doc.add_paragraph(line)

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
