"""Built-in fault-injection templates and the endpoints they can target."""

from typing import Dict, List, Tuple

from chaoscraft.brain.models import ChaosTemplate

JSON_HEADERS = {"Content-Type": "application/json"}

SERVER_ERROR = "Server Error"
SLOW_RESPONSE = "Slow Response"
NOT_FOUND = "Not Found"
MALFORMED_JSON = "Malformed JSON"
RANDOM_RESPONSES = "Random Responses"
RATE_LIMITED = "Rate Limited"

DEFAULT_ENDPOINTS: List[str] = [
    "/login",
    "/orders",
    "/checkout",
    "/users",
    "/products",
    "/payments",
]


def _builtin_templates() -> List[ChaosTemplate]:
    return [
        ChaosTemplate(
            name=SERVER_ERROR,
            description="Returns HTTP 500 Internal Server Error",
            status_code=500,
            response_body='{"error":"Internal server error"}',
            headers=dict(JSON_HEADERS),
        ),
        ChaosTemplate(
            name=SLOW_RESPONSE,
            description="Introduces 5 second delay",
            status_code=200,
            delay_ms=5000,
            response_body='{"message":"Success after delay"}',
            headers=dict(JSON_HEADERS),
        ),
        ChaosTemplate(
            name=NOT_FOUND,
            description="Returns HTTP 404 Not Found",
            status_code=404,
            response_body='{"error":"Resource not found"}',
            headers=dict(JSON_HEADERS),
        ),
        ChaosTemplate(
            name=MALFORMED_JSON,
            description="Returns invalid JSON response",
            status_code=200,
            # Deliberately broken JSON
            response_body='{"incomplete": json',
            is_malformed=True,
            headers=dict(JSON_HEADERS),
        ),
        ChaosTemplate(
            name=RANDOM_RESPONSES,
            description="Randomly switches between success and error",
            status_code=200,
            response_body='{"random":true}',
            headers=dict(JSON_HEADERS),
        ),
        ChaosTemplate(
            name=RATE_LIMITED,
            description="Returns HTTP 429 Too Many Requests",
            status_code=429,
            response_body='{"error":"Rate limit exceeded"}',
            headers=dict(JSON_HEADERS),
        ),
    ]


class TemplateCatalog:
    """Read-only, ordered catalog of the built-in chaos templates."""

    def __init__(self) -> None:
        self._templates: Tuple[ChaosTemplate, ...] = tuple(_builtin_templates())
        self._by_name: Dict[str, ChaosTemplate] = {t.name: t for t in self._templates}

    @property
    def templates(self) -> Tuple[ChaosTemplate, ...]:
        return self._templates

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._templates]

    def get(self, name: str) -> ChaosTemplate:
        """Look up a template by its exact name.

        Raises:
            KeyError: If no built-in template has that name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(
                f"Unknown template: {name!r}. Available: {', '.join(self.names)}"
            ) from None

    def __iter__(self):
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)
