"""Data models for the colony kernel."""

from colony_kernel.models.body import BodyPart, body_cost, generate_body
from colony_kernel.models.job import Job, Prerequisite, job_id, parse_job_id
from colony_kernel.models.business import (
    Business,
    BuildingWork,
    Executive,
    business_id,
    parse_business_id,
)

__all__ = [
    "BodyPart", "body_cost", "generate_body",
    "Job", "Prerequisite", "job_id", "parse_job_id",
    "Business", "BuildingWork", "Executive", "business_id", "parse_business_id",
]
