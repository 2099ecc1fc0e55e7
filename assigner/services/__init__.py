"""Reviewer selection and assignment engine."""

from assigner.services.deadline import Deadline
from assigner.services.engine import AssignmentEngine
from assigner.services.selector import EligibilitySelector

__all__ = ["AssignmentEngine", "Deadline", "EligibilitySelector"]
