"""Use case layer for the academics context.

Re-export the services for convenient imports in the web adapter and tests.
"""

from .assignments import AssignmentsService
from .attendance import AttendanceService
from .materials import MaterialsService
from .results import ResultsService
from .staff import StaffService
from .timetable import TimetableService

__all__ = [
    "AssignmentsService",
    "AttendanceService",
    "MaterialsService",
    "ResultsService",
    "StaffService",
    "TimetableService",
]
