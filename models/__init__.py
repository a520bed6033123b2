from models.trainee import Trainee
from models.course import Course
from models.trainer import Trainer
from models.session import Session
from models.assignment import Assignment, AssignmentLevel, AssignmentSource
from models.category import Category, CategoryKind, CategoryResult
from models.catalog import RequirementDirectory, CatalogImportError, normalize_catalog
from models.schedule_data import Schedule, ScheduleData, FeasibilityReport

__all__ = [
    "Trainee",
    "Course",
    "Trainer",
    "Session",
    "Assignment",
    "AssignmentLevel",
    "AssignmentSource",
    "Category",
    "CategoryKind",
    "CategoryResult",
    "RequirementDirectory",
    "CatalogImportError",
    "normalize_catalog",
    "Schedule",
    "ScheduleData",
    "FeasibilityReport",
]
