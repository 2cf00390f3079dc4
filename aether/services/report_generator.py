"""
Printable HTML report generator for Aether.

Renders saved diagnosis, prescription and radiology sessions as
standalone HTML documents ready for the browser's print dialog.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from jinja2 import Template

from aether.config import settings
from aether.models.records import RECORD_TYPES, Domain, DomainRecord
from aether.utils.logger import get_logger

logger = get_logger("report_generator")

SEVERE_KEYWORDS = ("pneumonia", "tuberculosis", "tumor", "cancer", "edema", "effusion", "fracture")
MODERATE_KEYWORDS = ("atelectasis", "consolidation", "infiltrate", "opacity")


def radiology_severity(condition: str) -> str:
    """Classify a radiology condition as 'severe', 'moderate' or 'normal'."""
    lower = condition.lower()
    if any(keyword in lower for keyword in SEVERE_KEYWORDS):
        return "severe"
    if any(keyword in lower for keyword in MODERATE_KEYWORDS):
        return "moderate"
    return "normal"


class ReportGenerator:
    """
    Generates printable reports for saved sessions.

    One template covers all three domains. Backfilled entries are
    labelled so a reader can tell them from model output.
    """

    REPORT_CSS = """
    @page { size: A4; margin: 2cm; }

    body {
        font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
        font-size: 11pt;
        line-height: 1.6;
        color: #333;
        max-width: 800px;
        margin: 0 auto;
    }

    .header {
        text-align: center;
        border-bottom: 2px solid #0066cc;
        padding-bottom: 20px;
        margin-bottom: 30px;
    }

    .header h1 { color: #0066cc; font-size: 24pt; margin: 0; }
    .header .subtitle { color: #666; font-size: 12pt; margin-top: 5px; }

    .info-box {
        border-left: 4px solid #ff9800;
        background: #fff8e1;
        padding: 15px;
        margin: 20px 0;
    }

    h2 {
        color: #0066cc;
        font-size: 14pt;
        margin-top: 25px;
        border-bottom: 1px solid #ddd;
        padding-bottom: 5px;
    }

    .item { margin: 8px 0; }
    .detail { color: #555; font-size: 10pt; margin-left: 15px; }
    .fallback { color: #888; font-style: italic; }
    .fallback-label { font-size: 9pt; color: #999; }

    .level { padding: 2px 8px; border-radius: 10px; font-size: 10pt; }
    .level-High { background: #ffcdd2; color: #c62828; }
    .level-Medium { background: #fff9c4; color: #f57f17; }
    .level-Low { background: #c8e6c9; color: #2e7d32; }

    .severity-severe { border-left: 4px solid #f44336; padding-left: 8px; }
    .severity-moderate { border-left: 4px solid #ff9800; padding-left: 8px; }
    .severity-normal { border-left: 4px solid #4caf50; padding-left: 8px; }

    .footer {
        margin-top: 40px;
        text-align: center;
        font-size: 9pt;
        color: #666;
        border-top: 1px solid #ddd;
        padding-top: 15px;
    }
    """

    TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
    <style>{{ css | safe }}</style>
</head>
<body>
    <div class="header">
        <h1>{{ title }}</h1>
        <div class="subtitle">Generated by Aether Health Assistant</div>
        <div class="subtitle">{{ generated_date }}</div>
    </div>

    {% if summary %}<p><strong>Summary:</strong> {{ summary }}</p>{% endif %}

    {% macro fallback_label(item) %}{% if item.is_fallback %} <span class="fallback-label">(no details extracted)</span>{% endif %}{% endmacro %}

    {% if domain == "diagnosis" %}
    {% if patient %}
    <h2>Patient Information</h2>
    <p>Age: {{ patient.age }} | Category: {{ patient.category }}</p>
    <p>Symptoms: {{ patient.symptoms }}</p>
    {% endif %}

    <h2>Possible Conditions</h2>
    {% for condition in record.conditions %}
    <div class="item{% if condition.is_fallback %} fallback{% endif %}">
        <strong>{{ condition.name }}</strong>
        <span class="level level-{{ condition.confidence.level.value }}">{{ condition.confidence.level.value }}{% if condition.confidence.percentage is not none %} ({{ condition.confidence.percentage }}%){% endif %}</span>
        {{ fallback_label(condition) }}
        <div class="detail">{{ condition.reasoning }}</div>
    </div>
    {% endfor %}

    <h2>Recommended Tests</h2>
    {% for test in record.tests %}
    <div class="item{% if test.is_fallback %} fallback{% endif %}">
        <strong>{{ test.name }}</strong>
        {% if test.urgency %}<span class="level level-{{ test.urgency.value }}">{{ test.urgency.value }}</span>{% endif %}
        {{ fallback_label(test) }}
        {% if test.purpose %}<div class="detail">{{ test.purpose }}</div>{% endif %}
    </div>
    {% endfor %}

    <h2>Treatment Recommendations</h2>
    {% for treatment in record.treatments %}
    <div class="item{% if treatment.is_fallback %} fallback{% endif %}">
        <strong>{{ treatment.action }}</strong>{{ fallback_label(treatment) }}
        {% if treatment.explanation %}<div class="detail">{{ treatment.explanation }}</div>{% endif %}
    </div>
    {% endfor %}

    <h2>When to See a Doctor</h2>
    <ul>{% for warning in record.warnings %}<li{% if "warnings" in fallbacks %} class="fallback"{% endif %}>{{ warning }}</li>{% endfor %}</ul>

    <h2>Medical Reasoning</h2>
    <ul>{% for point in record.reasoning %}<li{% if "reasoning" in fallbacks %} class="fallback"{% endif %}>{{ point }}</li>{% endfor %}</ul>

    {% elif domain == "prescription" %}
    <h2>Medicines</h2>
    {% for medicine in record.medicines %}
    <div class="item{% if medicine.is_fallback %} fallback{% endif %}">
        <strong>{{ medicine.name }}</strong>{% if medicine.dosage %} ({{ medicine.dosage }}){% endif %}{{ fallback_label(medicine) }}
        {% if medicine.alternative %}<div class="detail">Alternative: {{ medicine.alternative }}</div>{% endif %}
        {% if medicine.price %}<div class="detail">Price: {{ medicine.price }}</div>{% endif %}
    </div>
    {% endfor %}

    <h2>Diagnosis/Condition</h2>
    <p{% if "diagnosis" in fallbacks %} class="fallback"{% endif %}>{{ record.diagnosis }}</p>

    <h2>Doctor's Advice</h2>
    <p{% if "doctor_advice" in fallbacks %} class="fallback"{% endif %}>{{ record.doctor_advice }}</p>

    {% elif domain == "radiology" %}
    {% if description %}<p><strong>Clinical context:</strong> {{ description }}</p>{% endif %}

    <h2>Findings</h2>
    <ul>{% for finding in record.findings %}<li{% if "findings" in fallbacks %} class="fallback"{% endif %}>{{ finding }}</li>{% endfor %}</ul>

    <h2>Possible Conditions</h2>
    {% for condition in record.conditions %}
    <div class="item severity-{{ severity(condition) }}{% if "conditions" in fallbacks %} fallback{% endif %}">{{ condition }}</div>
    {% endfor %}

    <h2>Recommended Follow-up Tests</h2>
    <ul>{% for test in record.recommended_tests %}<li{% if "recommended_tests" in fallbacks %} class="fallback"{% endif %}>{{ test }}</li>{% endfor %}</ul>

    <h2>Radiologist-Style Impression</h2>
    <p{% if "impression" in fallbacks %} class="fallback"{% endif %}>{{ record.impression }}</p>
    {% endif %}

    <div class="info-box">
        <strong>Important Notice:</strong> This report was generated by an AI system
        and is not a medical diagnosis. Always consult a qualified healthcare
        professional before making medical decisions.
    </div>

    <div class="footer">
        <p>Report ID: {{ report_id }}</p>
        <p>Generated: {{ generated_date }} | Aether v{{ version }}</p>
    </div>
</body>
</html>
"""

    TITLES = {
        Domain.DIAGNOSIS: "Symptom Analysis Report",
        Domain.PRESCRIPTION: "Prescription Analysis Report",
        Domain.RADIOLOGY: "Radiology Analysis Report",
    }

    def __init__(self):
        self.template = Template(self.TEMPLATE, autoescape=True)

    def generate_html(
        self,
        domain: Domain,
        record: DomainRecord,
        report_id: str = "",
        summary: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Render a printable HTML report.

        Args:
            domain: Analysis domain of the record
            record: Parsed record
            report_id: Identifier printed in the footer
            summary: One-line session summary
            context: Extra template values (patient form, description)

        Returns:
            HTML string
        """
        html = self.template.render(
            domain=domain.value,
            record=record,
            fallbacks=set(record.fallback_fields),
            severity=radiology_severity,
            title=self.TITLES[domain],
            css=self.REPORT_CSS,
            summary=summary,
            report_id=report_id,
            generated_date=datetime.now().strftime("%B %d, %Y at %I:%M %p"),
            version=settings.app_version,
            **(context or {})
        )

        logger.info("HTML report generated", domain=domain.value, report_id=report_id)
        return html

    def generate_from_document(self, domain: Domain, document: Dict[str, Any]) -> str:
        """Render a report for a document loaded from the history store."""
        record = RECORD_TYPES[domain].model_validate(document["record"])
        return self.generate_html(
            domain,
            record,
            report_id=document.get("id", ""),
            summary=document.get("summary"),
            context={
                "patient": document.get("patient"),
                "description": document.get("description"),
            }
        )


# Lazy-loaded singleton
_report_generator: Optional[ReportGenerator] = None


def get_report_generator() -> ReportGenerator:
    """Get or create report generator singleton."""
    global _report_generator
    if _report_generator is None:
        _report_generator = ReportGenerator()
    return _report_generator
