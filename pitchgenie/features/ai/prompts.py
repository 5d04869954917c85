"""Prompt builders for proposals and pitch decks.

Each builder renders the request plus the industry field configuration into
a single user prompt. Output is deterministic for a given input.
"""

from typing import Mapping, Sequence, Union

from pitchgenie.features.ai.fields import FieldConfiguration

FieldValue = Union[str, Sequence[str]]

SLIDE_TEMPLATE = """<div class="slide" style="page-break-after: always; margin: 20px; padding: 30px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; border-radius: 10px; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
  <h1 style="font-size: 32px; font-weight: bold; margin-bottom: 20px; text-align: center;">[SLIDE TITLE]</h1>

  <div style="display: flex; gap: 20px; margin-top: 30px;">
    <div style="flex: 1;">
      <h2 style="font-size: 24px; margin-bottom: 15px; color: #f8f9fa;">Key Points</h2>
      <ul style="font-size: 18px; line-height: 1.6;">
        <li>[Point 1 with specific data/metrics]</li>
        <li>[Point 2 with specific data/metrics]</li>
        <li>[Point 3 with specific data/metrics]</li>
      </ul>
    </div>

    <div style="flex: 1; background: rgba(255,255,255,0.1); padding: 20px; border-radius: 8px;">
      <h3 style="font-size: 20px; margin-bottom: 10px; color: #f8f9fa;">Visual Elements</h3>
      <p style="font-size: 16px; line-height: 1.5;">[Detailed visual description for charts, graphs, images]</p>
    </div>
  </div>

  <div style="margin-top: 30px; padding: 15px; background: rgba(255,255,255,0.1); border-radius: 8px;">
    <h3 style="font-size: 18px; margin-bottom: 10px; color: #f8f9fa;">Speaker Notes</h3>
    <p style="font-size: 16px; line-height: 1.5;">[Compelling talking points for presentation]</p>
  </div>
</div>"""


def _is_technology(config: FieldConfiguration) -> bool:
    return config.id == "technology"


def proposal_tone(config: FieldConfiguration) -> str:
    if _is_technology(config):
        return "technically precise, solution-oriented"
    return "empathetic, evidence-based, authoritative"


def deck_credibility(config: FieldConfiguration) -> str:
    return "technically credible" if _is_technology(config) else "clinically validated"


def format_field_data(data: Mapping[str, FieldValue]) -> str:
    """Render field-specific form answers as `- key: value` lines (lists comma-joined)."""
    lines = []
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        lines.append(f"- {key}: {value}")
    return "\n".join(lines)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _bulleted(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _slide_list(config: FieldConfiguration) -> str:
    return "\n".join(
        f"**Slide {i}: {slide}**" for i, slide in enumerate(config.pitch_deck.slides, start=1)
    )


def _startup_block(request) -> str:
    return "\n".join([
        "Startup Information:",
        f"- Company: {request.startup_name}",
        f"- Tagline: {request.tagline or 'Not specified'}",
        f"- Problem: {request.problem}",
        f"- Solution: {request.solution}",
        f"- Market: {request.market}",
        f"- Business Model: {request.business_model or 'To be refined'}",
        f"- Team: {request.team or 'Strong founding team'}",
        f"- Funding Ask: {request.funding or 'Seeking investment'}",
    ])


def build_proposal_prompt(request, config: FieldConfiguration) -> str:
    workflow = config.proposal
    return f"""
You are a professional {config.name.lower()} consultant creating a comprehensive business proposal.

Client Information:
- Client Name: {request.client_name}
- Company: {request.client_company or 'Not specified'}
- Project: {request.project_title}
- Description: {request.project_description}
- Goals: {request.goals}
- Budget: {request.budget}
- Timeline: {request.timeline}
- Services Requested: {', '.join(request.services)}

Industry Focus: {config.name}
Tone: Professional, {proposal_tone(config)}

Field-Specific Data:
{format_field_data(request.field_specific_data)}

Generate a comprehensive proposal with these sections:
{_numbered(workflow.sections)}

Industry Guidelines:
{_bulleted(workflow.industry_prompts)}

Format as a professional document with clear headings and detailed content for each section.
Target length: ~{workflow.suggested_length} words.
"""


def build_pitch_deck_prompt(request, config: FieldConfiguration) -> str:
    deck = config.pitch_deck
    return f"""
You are creating a compelling {config.name.lower()} pitch deck for investors.

{_startup_block(request)}

Industry Focus: {config.name}
Presentation Style: {deck.presentation_style}

Field-Specific Data:
{format_field_data(request.field_specific_data)}

Create a {len(deck.slides)}-slide pitch deck with these slides:
{_slide_list(config)}

Focus Areas: {', '.join(deck.focus_areas)}

For each slide, provide:
1. A compelling headline
2. 2-4 key bullet points
3. Suggested visuals description
4. Speaker notes with talking points

Make it investor-focused, data-driven, and {deck_credibility(config)}.
"""


def build_visual_pitch_deck_prompt(request, config: FieldConfiguration) -> str:
    deck = config.pitch_deck
    value_clause = (
        "Demonstrates technical credibility with clear product value"
        if _is_technology(config)
        else "Shows evidence-based value propositions with measurable impact"
    )
    return f"""
You are creating a compelling visual {config.name.lower()} pitch deck for investors. This will be exported as a professional PDF document.

{_startup_block(request)}

Industry Focus: {config.name}
Presentation Style: Professional, visually engaging, PDF-ready format

Field-Specific Data:
{format_field_data(request.field_specific_data)}

Create a {len(deck.slides)}-slide visual pitch deck optimized for PDF export with these slides:
{_slide_list(config)}

For each slide, provide:
1. **Slide Title**: A compelling, concise headline (max 60 characters)
2. **Key Points**: 2-4 impactful bullet points with specific data/metrics
3. **Visual Layout**: Detailed description for PDF rendering:
   - Chart/graph specifications (type, data points, colors)
   - Image placement and sizing recommendations
   - Color scheme (primary, secondary, accent colors)
   - Typography hierarchy (headings, body text, captions)
   - Layout structure (grid, columns, sections)
4. **Visual Elements**: Specific components for PDF generation:
   - Data visualization types (bar charts, pie charts, line graphs, infographics)
   - Icon and graphic recommendations
   - Product mockups or UI screenshots descriptions
   - Team photos or company logo placement
   - Before/after comparisons or process flows
5. **Speaker Notes**: Compelling talking points for presentation
6. **PDF Optimization**: Notes for clean PDF export:
   - Font sizes and styles
   - Spacing and margins
   - Page breaks and layout considerations

Focus on creating content that:
- Translates well to PDF format
- Is visually engaging and investor-focused
- Contains clear, actionable data and metrics
- Maintains professional appearance in print
- {value_clause}

Format the output with clear HTML-like structure for easy PDF conversion.
"""


def build_pdf_pitch_deck_prompt(request, config: FieldConfiguration) -> str:
    deck = config.pitch_deck
    value_clause = (
        "Demonstrates technical innovation and market potential"
        if _is_technology(config)
        else "Shows evidence-based solutions and measurable impact"
    )
    return f"""
You are creating a premium {config.name.lower()} pitch deck specifically optimized for PDF export. This will be a professional, print-ready document.

{_startup_block(request)}

Industry Focus: {config.name}
Output Format: HTML-structured content optimized for PDF conversion

Field-Specific Data:
{format_field_data(request.field_specific_data)}

Create a {len(deck.slides)}-slide pitch deck with this exact HTML structure for each slide:

{SLIDE_TEMPLATE}

For each slide, provide:
1. **Slide Title**: Compelling headline (max 50 characters)
2. **Key Points**: 3-4 bullet points with specific metrics/data
3. **Visual Elements**: Detailed descriptions for:
   - Data visualizations (charts, graphs, infographics)
   - Product mockups or screenshots
   - Team photos or company branding
   - Process flows or comparisons
4. **Speaker Notes**: Engaging talking points for presentation

Slides to create:
{_slide_list(config)}

Focus on creating content that:
- Uses professional, investor-focused language
- Includes specific, measurable data and metrics
- Provides clear visual descriptions for PDF rendering
- Maintains consistent styling and layout
- {value_clause}

Ensure each slide is self-contained and will render properly in PDF format.
"""
