"""Job board vocabulary shared by models, schemas and filters."""

from typing import Literal

JobCategory = Literal[
    "IT",
    "SOFTWARE_DEVELOPMENT",
    "DATA_SCIENCE",
    "MACHINE_LEARNING",
    "WEB_DEVELOPMENT",
    "SALES",
    "MARKETING",
    "ACCOUNTING",
    "GRAPHIC_DESIGN",
    "CONTENT_WRITING",
    "MEDICAL",
    "TEACHING",
    "ENGINEERING",
    "PRODUCTION",
    "LOGISTICS",
    "HOSPITALITY",
    "REAL_ESTATE",
    "LAW",
    "FINANCE",
    "HUMAN_RESOURCES",
    "CUSTOMER_SERVICE",
    "ADMINISTRATION",
    "MANAGEMENT",
    "OTHER",
]

JobType = Literal[
    "FULL_TIME",
    "PART_TIME",
    "CONTRACT",
    "INTERNSHIP",
    "TEMPORARY",
    "VOLUNTEER",
    "FREELANCE",
]

WorkType = Literal["ON_SITE", "REMOTE", "HYBRID"]

ExperienceLevel = Literal[
    "ENTRY_LEVEL",
    "MID_LEVEL",
    "SENIOR_LEVEL",
    "EXECUTIVE",
    "NO_EXPERIENCE",
    "INTERN",
    "FRESHER",
]

Branch = Literal["text", "vector"]

JOB_STATUS_ACTIVE = "ACTIVE"
MODERATION_PENDING = "PENDING"
MODERATION_APPROVED = "APPROVED"
