"""Chaos Test Report Generator."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound

from chaoscraft.brain.models import ChaosTemplate, ChaosTest, TestReport
from chaoscraft.brain.templates import (
    MALFORMED_JSON,
    NOT_FOUND,
    RANDOM_RESPONSES,
    RATE_LIMITED,
    SERVER_ERROR,
    SLOW_RESPONSE,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SCENARIO_EXPLANATIONS: Dict[str, str] = {
    SERVER_ERROR: (
        "This helps test how your application handles server failures, "
        "database outages, or internal service errors."
    ),
    SLOW_RESPONSE: "This simulates network latency, overloaded servers, or slow database queries.",
    NOT_FOUND: "This tests how your system handles missing resources or broken links.",
    MALFORMED_JSON: "This tests your application's resilience to corrupted or invalid API responses.",
    RANDOM_RESPONSES: (
        "This simulates unpredictable API behavior, testing your system's ability "
        "to handle inconsistent responses."
    ),
    RATE_LIMITED: (
        "This tests whether your clients back off and retry correctly when an API "
        "starts throttling them."
    ),
}


def explain(template: ChaosTemplate, endpoint: str) -> str:
    """Describe what a template does to an endpoint.

    Only the template's declared values are used, so a "Random Responses"
    run reads the same whichever branch it took.
    """
    explanation = "**Chaos Test Explanation**\n\n"
    explanation += (
        f"This test simulates **{template.description.lower()}** "
        f"on the `{endpoint}` endpoint.\n\n"
    )
    explanation += SCENARIO_EXPLANATIONS.get(template.name, "")
    explanation += "\n\n**Technical Details:**\n"
    explanation += f"- HTTP Status: {template.status_code}\n"
    explanation += f"- Response Delay: {template.delay_ms}ms\n"
    explanation += f"- Endpoint: {endpoint}"
    return explanation


def mock_config(endpoint: str, template: ChaosTemplate) -> str:
    """Render the WireMock-compatible mapping document for a template."""
    config = {
        "mappings": [
            {
                "request": {"method": "ANY", "url": endpoint},
                "response": {
                    "status": template.status_code,
                    "body": template.response_body,
                    "headers": dict(template.headers),
                    "delayDistribution": {
                        "type": "fixed",
                        "milliseconds": template.delay_ms,
                    },
                },
            }
        ]
    }
    return json.dumps(config, indent=2)


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "n/a"
    return value.strftime(TIMESTAMP_FORMAT)


class Reporter:
    """Generate chaos test reports.

    Reports are Markdown documents rendered from ``templates/report.md.j2``
    with a fixed section order:
    - Test details (endpoint, scenario, timestamps, status)
    - Template configuration
    - Explanation
    - Logs
    """

    def __init__(self, output_path: Union[str, Path] = "./reports") -> None:
        """Initialize the reporter.

        Args:
            output_path: Directory that ``write`` saves reports into
        """
        self.output_path = Path(output_path)
        self._setup_template_engine()

    def _setup_template_engine(self) -> None:
        template_dir = Path(__file__).parent / "templates"
        if not template_dir.exists():
            raise FileNotFoundError(f"Template directory not found: {template_dir}")

        self.template_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _load_template(self, template_name: str) -> Any:
        """Load a Jinja2 template.

        Raises:
            FileNotFoundError: If the template file is missing
            TemplateError: If the template has syntax errors
        """
        try:
            return self.template_env.get_template(template_name)
        except TemplateNotFound as e:
            raise FileNotFoundError(f"Report template '{template_name}' not found") from e
        except TemplateError as e:
            raise TemplateError(f"Report template '{template_name}' is invalid: {e}") from e

    def explain(self, template: ChaosTemplate, endpoint: str) -> str:
        return explain(template, endpoint)

    def build_report(self, test: ChaosTest) -> TestReport:
        return TestReport(
            test_id=test.id,
            api_tested=test.endpoint,
            chaos_scenario=test.template.name,
            start_time=test.created_at,
            end_time=test.completed_at,
            explanation=explain(test.template, test.endpoint),
            logs=list(test.logs),
        )

    def markdown_report(self, test: ChaosTest, generated_at: Optional[datetime] = None) -> str:
        generated_at = generated_at or datetime.now(timezone.utc)
        context = {
            "test": test,
            "start_time": _format_time(test.created_at),
            "end_time": _format_time(test.completed_at),
            "explanation": explain(test.template, test.endpoint),
            "generated_at": _format_time(generated_at),
        }
        return self._load_template("report.md.j2").render(**context)

    def write(self, test: ChaosTest) -> Path:
        """Write the Markdown report for ``test`` and return its path."""
        self.output_path.mkdir(parents=True, exist_ok=True)
        output_file = self.output_path / f"chaoscraft-{test.id}.md"
        output_file.write_text(self.markdown_report(test), encoding="utf-8")
        logger.info("Report for %s written to %s", test.id, output_file)
        return output_file
