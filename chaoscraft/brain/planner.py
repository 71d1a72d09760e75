"""Response Recipe Planner - turns a chaos template into a concrete mocked response."""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from chaoscraft.brain.models import ChaosTemplate
from chaoscraft.brain.templates import RANDOM_RESPONSES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeBranch:
    """One possible outcome of a randomised recipe."""

    name: str
    status_code: int
    body: str


RANDOM_ERROR_BRANCH = RecipeBranch("error", 500, '{"error":"Random server error"}')
RANDOM_SUCCESS_BRANCH = RecipeBranch("success", 200, '{"message":"Random success"}')
RANDOM_BRANCHES = (RANDOM_ERROR_BRANCH, RANDOM_SUCCESS_BRANCH)


@dataclass(frozen=True)
class Recipe:
    """Concrete response program handed to the mock server.

    ``branch`` names the random branch chosen at planning time. When
    ``branches`` is non-empty the choice is deferred to each request instead
    and ``status_code``/``body`` are only the template's declared fallback.
    """

    status_code: int
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    delay_ms: Optional[int] = None
    branch: Optional[str] = None
    branches: Tuple[RecipeBranch, ...] = ()

    @property
    def is_per_request(self) -> bool:
        return bool(self.branches)

    def respond(self, rng: Optional[random.Random] = None) -> Tuple[int, Optional[str]]:
        """Resolve the status code and body for a single request."""
        if not self.branches:
            return self.status_code, self.body
        chosen = (rng or random).choice(self.branches)
        return chosen.status_code, chosen.body


class ResponseRecipePlanner:
    """Build response recipes from chaos templates.

    Deterministic for every template except "Random Responses", which flips a
    fair coin once per ``build`` call. With ``per_request_random`` the coin is
    left on the recipe and flipped by the mock server on every request.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        per_request_random: bool = False,
    ) -> None:
        self.rng = rng or random.Random()
        self.per_request_random = per_request_random

    def build(self, template: ChaosTemplate) -> Recipe:
        delay_ms = template.delay_ms if template.delay_ms > 0 else None
        headers = dict(template.headers)

        if template.name == RANDOM_RESPONSES:
            if self.per_request_random:
                logger.debug("Deferring random branch choice to each request")
                return Recipe(
                    status_code=template.status_code,
                    body=template.response_body or None,
                    headers=headers,
                    delay_ms=delay_ms,
                    branches=RANDOM_BRANCHES,
                )

            chosen = RANDOM_ERROR_BRANCH if self.rng.randint(0, 1) == 0 else RANDOM_SUCCESS_BRANCH
            logger.debug("Random Responses resolved to %s branch", chosen.name)
            return Recipe(
                status_code=chosen.status_code,
                body=chosen.body,
                headers=headers,
                delay_ms=delay_ms,
                branch=chosen.name,
            )

        return Recipe(
            status_code=template.status_code,
            body=template.response_body or None,
            headers=headers,
            delay_ms=delay_ms,
        )
