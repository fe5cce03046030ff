"""Planning engine components."""

from .base import EngineComponent
from .content import ContentAssembler
from .contributions import ContributionWorkflow
from .planner import ServicePlanner, build_planner
from .staffing import StaffingCoordinator

__all__ = [
    "EngineComponent",
    "ContentAssembler",
    "ContributionWorkflow",
    "StaffingCoordinator",
    "ServicePlanner",
    "build_planner",
]
