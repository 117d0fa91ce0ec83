"""
Tracker - AI Prompt Templates

Prompt templates for the Analyze feature. Each template is filled by
services.prompt_builder and sent as the user message; the system message
comes from settings.ai.ai_system_prompt.

User-entered text (company names, skills, notes) is substituted verbatim.
"""

# -----------------------------------------------------------------------------
# Job Applications
# -----------------------------------------------------------------------------
JOB_SUMMARY_PROMPT = """Analyze these job applications:
- Total: {total}
- Statuses: {statuses}
- Required skills: {skills}

Provide insights on application patterns and skill gaps."""


# -----------------------------------------------------------------------------
# Research Applications
# -----------------------------------------------------------------------------
RESEARCH_SUMMARY_PROMPT = """Analyze these research applications:
- Total: {total}
- Fields: {fields}
- Statuses: {statuses}

Identify trends and suggest improvement areas."""


# -----------------------------------------------------------------------------
# Skill Learning
# -----------------------------------------------------------------------------
SKILL_SUMMARY_PROMPT = """Analyze these learning progressions:
{progress_report}

Suggest focus areas and time management tips."""


# -----------------------------------------------------------------------------
# Prompt Registry - for viewing and live editing via API
# -----------------------------------------------------------------------------
ALL_PROMPTS = {
    "job_summary": JOB_SUMMARY_PROMPT,
    "research_summary": RESEARCH_SUMMARY_PROMPT,
    "skill_summary": SKILL_SUMMARY_PROMPT,
}

# Placeholders each template must keep so the builder can fill it
REQUIRED_FIELDS = {
    "job_summary": ("total", "statuses", "skills"),
    "research_summary": ("total", "fields", "statuses"),
    "skill_summary": ("progress_report",),
}


def get_prompt(name: str) -> str:
    """Get a prompt template by name."""
    return ALL_PROMPTS.get(name, "")


def missing_fields(name: str, template: str) -> list:
    """Placeholders from REQUIRED_FIELDS that the template does not contain."""
    return [field for field in REQUIRED_FIELDS.get(name, ()) if "{" + field + "}" not in template]


def set_prompt(name: str, template: str) -> bool:
    """Update a prompt template at runtime (resets on restart)."""
    if name not in ALL_PROMPTS:
        return False
    ALL_PROMPTS[name] = template
    return True
