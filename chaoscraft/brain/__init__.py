"""The Brain - templates, recipe planning and test bookkeeping."""

from chaoscraft.brain.models import ChaosTemplate, ChaosTest, TestReport, TestStatus
from chaoscraft.brain.planner import Recipe, ResponseRecipePlanner
from chaoscraft.brain.registry import TestRegistry
from chaoscraft.brain.templates import DEFAULT_ENDPOINTS, TemplateCatalog

__all__ = [
    "ChaosTemplate",
    "ChaosTest",
    "TestReport",
    "TestStatus",
    "Recipe",
    "ResponseRecipePlanner",
    "TestRegistry",
    "DEFAULT_ENDPOINTS",
    "TemplateCatalog",
]
