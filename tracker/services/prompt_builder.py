"""
Tracker - Summarization prompt builder.

Turns a collection of records into the text sent to the summary model.
Only the most recent records are described so the prompt stays short.

Grouped counts and the skill set are listed in first-appearance order
within the recency-sorted window, so the same records always produce the
same prompt.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from . import ai_prompts

RECENT_LIMIT = 5


def most_recent(records: Iterable, limit: int = RECENT_LIMIT, date_attr: str = "apply_date") -> List:
    """
    The `limit` most recently dated records, newest first.

    sorted() is stable, so records with the same date keep their fetch order.
    Records without a date sort last.
    """
    return sorted(
        records,
        key=lambda record: getattr(record, date_attr) or datetime.min,
        reverse=True,
    )[:limit]


def group_counts(records: Iterable, attr: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        key = getattr(record, attr)
        counts[key] = counts.get(key, 0) + 1
    return counts


def format_counts(counts: Dict[str, int]) -> str:
    """{"Applied": 2, "Offer": 1} -> "Applied: 2, Offer: 1"."""
    return ", ".join(f"{key}: {count}" for key, count in counts.items())


def unique_tags(groups: Iterable[Sequence[str]]) -> List[str]:
    """Flatten and deduplicate, keeping first appearance."""
    seen = []
    for group in groups:
        for tag in group:
            if tag not in seen:
                seen.append(tag)
    return seen


def build_job_prompt(jobs: Iterable) -> str:
    recent = most_recent(jobs)
    skills = unique_tags(job.skills for job in recent)
    return ai_prompts.get_prompt("job_summary").format(
        total=len(recent),
        statuses=format_counts(group_counts(recent, "status")),
        skills=", ".join(skills),
    )


def build_research_prompt(research_items: Iterable) -> str:
    recent = most_recent(research_items)
    return ai_prompts.get_prompt("research_summary").format(
        total=len(recent),
        fields=format_counts(group_counts(recent, "research_field")),
        statuses=format_counts(group_counts(recent, "status")),
    )


def build_skills_prompt(skills: Iterable) -> str:
    active = [skill for skill in skills if (skill.progress or 0.0) < 1.0]
    progress_report = "\n".join(
        f"{skill.skill_name}: {skill.formatted_progress}" for skill in active
    )
    return ai_prompts.get_prompt("skill_summary").format(progress_report=progress_report)
