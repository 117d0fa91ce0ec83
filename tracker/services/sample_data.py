"""
Tracker - Sample data

Demo records for a fresh install or a demo reset: five job applications
applied on consecutive days, one research application and one skill.
"""
from datetime import datetime, timedelta
from typing import Dict

from ..models import JobApplication, ResearchApplication, SkillLearning

SAMPLE_JOBS = [
    ("Apple", "iOS Developer", "Applied", ["Swift", "UIKit", "CoreData"]),
    ("Google", "SWE", "Interview", ["Python", "Go"]),
    ("Amazon", "Data Scientist", "Offer", ["Python", "SQL"]),
    ("Microsoft", "PM", "Rejected", []),
    ("Tesla", "ML Engineer", "Applied", ["PyTorch"]),
]


def seed_sample_data(store, reset: bool = False) -> Dict[str, int]:
    """
    Insert the sample records.

    Args:
        store: RecordStore to write through
        reset: delete every existing record of all three types first

    Returns:
        Count of records created per type
    """
    if reset:
        for model in (JobApplication, ResearchApplication, SkillLearning):
            store.delete_all(model)

    now = datetime.utcnow()
    jobs = store.create_many(JobApplication, [
        {
            "company_name": company,
            "position_name": position,
            "status": status,
            "required_skills": skills,
            "apply_date": now - timedelta(days=i),
        }
        for i, (company, position, status, skills) in enumerate(SAMPLE_JOBS, start=1)
    ])

    research = store.create_many(ResearchApplication, [{
        "university_name": "Stanford",
        "professor_name": "Dr. Smith",
        "research_field": "Computer Science",
        "status": "Submitted",
        "apply_date": now,
    }])

    skills = store.create_many(SkillLearning, [{
        "skill_name": "SwiftUI",
        "start_date": now,
        "target_date": now + timedelta(days=30),
        "progress": 0.25,
        "resources": [
            "https://developer.apple.com/tutorials/swiftui",
            "https://www.hackingwithswift.com/quick-start/swiftui",
        ],
    }])

    return {"jobs": len(jobs), "research": len(research), "skills": len(skills)}
