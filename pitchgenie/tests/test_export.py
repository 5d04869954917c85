"""Export formatting and the export endpoints (browser rendering stubbed)."""
from io import BytesIO

import pytest
from docx import Document as DocxDocument

from pitchgenie.features.documents.service import create_document
from pitchgenie.features.export import renderer
from pitchgenie.features.export.formatting import (
    build_pitch_deck_html,
    build_proposal_docx,
    build_proposal_html,
    format_content_for_pdf,
    format_pitch_deck_for_pdf,
    sanitize_filename,
)


@pytest.fixture
def rendered(monkeypatch):
    calls = []

    async def fake_render_pdf(html, *, landscape=False, margin="20mm"):
        calls.append({"html": html, "landscape": landscape, "margin": margin})
        return b"%PDF-1.4 fake"

    monkeypatch.setattr(renderer, "render_pdf", fake_render_pdf)
    return calls


def _proposal(user_id, **overrides):
    values = dict(
        user_id=user_id,
        doc_type="proposal",
        client_name="Acme",
        project_title="Tech & AI Corp!!!",
        content="# Title\n## Scope\n- item one\n**Total**\nplain text",
    )
    values.update(overrides)
    return create_document(**values)


def _deck(user_id, content="## Slide 1\n**Nimbus**\n## Slide 2\n**Problem**\n• Too slow"):
    return create_document(
        user_id=user_id,
        doc_type="pitch-deck",
        client_name="Nimbus Labs",
        project_title="Weather for clouds",
        content=content,
    )


def test_sanitize_filename():
    assert sanitize_filename("Tech & AI Corp!!!") == "Tech___AI_Corp___"
    assert sanitize_filename("Q3-Plan 2024") == "Q3_Plan_2024"
    assert sanitize_filename(None) == "proposal"
    assert sanitize_filename("", "pitch_deck") == "pitch_deck"


def test_format_content_for_pdf_line_rules():
    html = format_content_for_pdf("# A\n## B\n### C\n**Bold**\n- item\n---\n\ntext")
    assert html == (
        "<h1>A</h1><h2>B</h2><h3>C</h3><p><strong>Bold</strong></p>"
        "<li>item</li><hr><br><p>text</p>"
    )


def test_format_content_for_pdf_escapes_markup():
    assert format_content_for_pdf("<script>x</script>") == "<p>&lt;script&gt;x&lt;/script&gt;</p>"


def test_legacy_deck_first_block_becomes_title_slide():
    html = format_pitch_deck_for_pdf(
        "## Slide 1: Intro\n**Welcome**\n## Slide 2: Problem\n**Problem**\n• Slow\n• Costly\nignored line",
        "Nimbus",
        "Fast clouds",
    )
    assert html.count('<div class="slide title-slide">') == 1
    assert html.count('<div class="slide">') == 1
    assert html.startswith('<div class="slide title-slide"><h1>Nimbus</h1><div class="tagline">Fast clouds</div><h2>Welcome</h2>')
    assert "<h2>Problem</h2><ul><li>Slow</li><li>Costly</li></ul>" in html
    assert '<div class="slide-number">2</div>' in html
    assert "ignored line" not in html


def test_html_deck_gets_title_slide_prepended():
    content = '<div class="slide"><h1>Problem</h1></div>'
    html = format_pitch_deck_for_pdf(content, "Nimbus", None)
    assert html.startswith('<div class="slide title-slide"><h1>Nimbus</h1>')
    assert html.endswith(content)


def test_deck_without_headings_keeps_text():
    html = format_pitch_deck_for_pdf("Just some text", "Nimbus")
    assert html.count('<div class="slide">') == 1
    assert "<p>Just some text</p>" in html


def test_html_pages_embed_styles_and_title():
    page = build_proposal_html("# Hi", "Portal <v2>")
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>Portal &lt;v2&gt;</title>" in page
    assert "border-bottom: 3px solid #15803d" in page
    assert "<h1>Hi</h1>" in page

    deck = build_pitch_deck_html("## Slide 1\n**Hello**", "Nimbus", "tag")
    assert "<title>Nimbus Pitch Deck</title>" in deck
    assert "page-break-after: always" in deck


def test_proposal_docx_structure():
    data = build_proposal_docx("# Title\n## Section\n- bullet\n**Bold line**\n---\n\nBody text")
    doc = DocxDocument(BytesIO(data))
    paragraphs = [(p.style.name, p.text) for p in doc.paragraphs]
    assert paragraphs == [
        ("Heading 1", "Title"),
        ("Heading 2", "Section"),
        ("List Bullet", "bullet"),
        ("Normal", "Bold line"),
        ("Normal", "Body text"),
    ]
    assert doc.paragraphs[3].runs[0].bold is True


def test_export_requires_session(client):
    assert client.get("/api/export/proposal/prop_1").status_code == 401
    assert client.get("/api/export/pitch-deck/deck_1").status_code == 401


def test_export_proposal_pdf(client, make_user, rendered):
    user, headers = make_user()
    doc = _proposal(user.id)

    resp = client.get(f"/api/export/proposal/{doc.id}?format=pdf", headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == 'attachment; filename="Tech___AI_Corp___.pdf"'
    assert resp.content == b"%PDF-1.4 fake"
    assert rendered[0]["landscape"] is False
    assert rendered[0]["margin"] == "20mm"
    assert "<h2>Scope</h2>" in rendered[0]["html"]


def test_export_proposal_docx_skips_browser(client, make_user, rendered):
    user, headers = make_user()
    doc = _proposal(user.id)

    resp = client.get(f"/api/export/proposal/{doc.id}?format=docx", headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert resp.headers["content-disposition"] == 'attachment; filename="Tech___AI_Corp___.docx"'
    assert resp.content[:2] == b"PK"
    assert rendered == []


def test_export_proposal_invalid_format(client, make_user, rendered):
    user, headers = make_user()
    doc = _proposal(user.id)
    resp = client.get(f"/api/export/proposal/{doc.id}?format=rtf", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid format"


def test_export_other_users_proposal_is_404(client, make_user, rendered):
    owner, _ = make_user("owner@example.com")
    _, intruder_headers = make_user("intruder@example.com")
    doc = _proposal(owner.id)

    resp = client.get(f"/api/export/proposal/{doc.id}", headers=intruder_headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Proposal not found"
    assert rendered == []


def test_export_proposal_id_of_a_deck_is_404(client, make_user, rendered):
    user, headers = make_user()
    deck = _deck(user.id)
    resp = client.get(f"/api/export/proposal/{deck.id}", headers=headers)
    assert resp.status_code == 404


def test_export_pitch_deck_pdf(client, make_user, rendered):
    user, headers = make_user()
    deck = _deck(user.id)

    resp = client.get(f"/api/export/pitch-deck/{deck.id}", headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == 'attachment; filename="Nimbus_Labs_pitch_deck.pdf"'
    assert rendered[0]["landscape"] is True
    assert rendered[0]["margin"] == "10mm"
    assert '<div class="tagline">Weather for clouds</div>' in rendered[0]["html"]


def test_export_pitch_deck_missing(client, make_user, rendered):
    _, headers = make_user()
    resp = client.get("/api/export/pitch-deck/deck_missing", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Pitch deck not found"


def test_render_failure_is_500(client, make_user, monkeypatch):
    async def broken(html, *, landscape=False, margin="20mm"):
        raise RuntimeError("chromium crashed")

    monkeypatch.setattr(renderer, "render_pdf", broken)
    user, headers = make_user()
    doc = _proposal(user.id)

    resp = client.get(f"/api/export/proposal/{doc.id}", headers=headers)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to export proposal"
