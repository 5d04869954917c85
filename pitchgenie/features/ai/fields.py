"""
Industry field configurations.

Each field describes how proposals and pitch decks are structured for that
industry, plus the extra form inputs the generation forms render.
"""
from dataclasses import dataclass, field, asdict
from types import MappingProxyType
from typing import Literal, Mapping, Optional

DEFAULT_FIELD = "technology"

FormFieldType = Literal["text", "textarea", "select", "multiselect"]


@dataclass(frozen=True)
class FormField:
    id: str
    label: str
    type: FormFieldType
    required: bool
    placeholder: Optional[str] = None
    options: tuple[str, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class ProposalWorkflow:
    sections: tuple[str, ...]
    required_fields: tuple[str, ...]
    suggested_length: int
    industry_prompts: tuple[str, ...]


@dataclass(frozen=True)
class PitchDeckWorkflow:
    slides: tuple[str, ...]
    required_fields: tuple[str, ...]
    presentation_style: str
    focus_areas: tuple[str, ...]


@dataclass(frozen=True)
class FieldConfiguration:
    id: str
    name: str
    description: str
    color: str
    proposal: ProposalWorkflow
    pitch_deck: PitchDeckWorkflow
    form_fields: tuple[FormField, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return asdict(self)


_TECHNOLOGY = FieldConfiguration(
    id="technology",
    name="Technology & Software Development",
    description="Software development, SaaS products, technical consulting",
    color="blue",
    proposal=ProposalWorkflow(
        sections=(
            "Technical Requirements Analysis",
            "Solution Architecture",
            "Development Methodology",
            "Technology Stack Recommendations",
            "Timeline & Milestones",
            "Development Team Structure",
            "Quality Assurance Process",
            "Deployment & Maintenance",
            "Security Considerations",
            "Budget Breakdown",
        ),
        required_fields=("projectComplexity", "techStack", "timeline", "budget"),
        suggested_length=2500,
        industry_prompts=(
            "Focus on technical architecture and scalability",
            "Include security and compliance considerations",
            "Emphasize development methodology and best practices",
            "Highlight technical expertise and experience",
        ),
    ),
    pitch_deck=PitchDeckWorkflow(
        slides=(
            "Problem & Market Gap",
            "Technical Solution",
            "Product Demo/MVP",
            "Technology Competitive Advantage",
            "Development Roadmap",
            "Tech Team Expertise",
            "Scalability Architecture",
            "Market Validation & Metrics",
            "Funding for R&D",
            "Go-to-Market Strategy",
        ),
        required_fields=("problemStatement", "technicalSolution", "marketSize"),
        presentation_style="technical",
        focus_areas=("innovation", "scalability", "technical_expertise", "market_disruption"),
    ),
    form_fields=(
        FormField(
            id="projectComplexity",
            label="Project Complexity",
            type="select",
            required=True,
            options=("Simple", "Medium", "Complex", "Enterprise"),
            description="How complex is the technical implementation?",
        ),
        FormField(
            id="techStack",
            label="Preferred Technology Stack",
            type="multiselect",
            required=False,
            options=("React/Next.js", "Node.js", "Python/Django", "Java/Spring", "AWS", "Azure", "Docker", "Kubernetes"),
            description="Select preferred technologies for the project",
        ),
        FormField(
            id="integrationNeeds",
            label="Integration Requirements",
            type="textarea",
            required=False,
            placeholder="Describe any third-party integrations, APIs, or existing systems...",
        ),
        FormField(
            id="securityRequirements",
            label="Security & Compliance Needs",
            type="multiselect",
            required=False,
            options=("GDPR", "SOC 2", "HIPAA", "PCI DSS", "ISO 27001", "Custom Security Requirements"),
        ),
    ),
)

_HEALTHCARE = FieldConfiguration(
    id="healthcare",
    name="Healthcare & Medical Services",
    description="Medical devices, healthcare software, clinical services",
    color="red",
    proposal=ProposalWorkflow(
        sections=(
            "Healthcare Compliance Overview",
            "Patient Data Security (HIPAA)",
            "Clinical Workflow Integration",
            "Regulatory Requirements",
            "Training & Implementation",
            "Outcome Measurement",
            "Risk Management",
            "Compliance Monitoring",
            "Support & Maintenance",
        ),
        required_fields=("complianceType", "patientPopulation", "regulatoryPath"),
        suggested_length=3000,
        industry_prompts=(
            "Prioritize patient safety and outcomes",
            "Include relevant regulatory considerations",
            "Reference clinical evidence and best practices",
            "Address compliance and risk management",
        ),
    ),
    pitch_deck=PitchDeckWorkflow(
        slides=(
            "Healthcare Problem",
            "Clinical Solution",
            "Regulatory Pathway",
            "Clinical Validation",
            "Healthcare Market Size",
            "Reimbursement Strategy",
            "Clinical Advisory Board",
            "FDA/Regulatory Status",
            "Healthcare Partnerships",
            "Patient Impact Metrics",
        ),
        required_fields=("healthcareProblem", "clinicalSolution", "regulatoryStatus"),
        presentation_style="clinical",
        focus_areas=("patient_outcomes", "clinical_evidence", "regulatory_compliance", "market_access"),
    ),
    form_fields=(
        FormField(
            id="complianceType",
            label="Compliance Requirements",
            type="multiselect",
            required=True,
            options=("HIPAA", "FDA 510(k)", "FDA PMA", "MDR (EU)", "ISO 13485", "Other"),
            description="Which regulatory standards apply?",
        ),
        FormField(
            id="patientPopulation",
            label="Target Patient Population",
            type="text",
            required=True,
            placeholder="e.g., Diabetes patients, Elderly care, Pediatric oncology...",
        ),
        FormField(
            id="clinicalOutcomes",
            label="Expected Clinical Outcomes",
            type="textarea",
            required=False,
            placeholder="Describe the clinical benefits and measurable outcomes...",
        ),
    ),
)

FIELD_CONFIGURATIONS: Mapping[str, FieldConfiguration] = MappingProxyType({
    _TECHNOLOGY.id: _TECHNOLOGY,
    _HEALTHCARE.id: _HEALTHCARE,
})


def get_field_configuration(field_id: Optional[str]) -> Optional[FieldConfiguration]:
    if not field_id:
        return None
    return FIELD_CONFIGURATIONS.get(field_id)


def get_default_field() -> str:
    return DEFAULT_FIELD
