"""Tests for the built-in template catalog."""

import pytest

from chaoscraft.brain.templates import DEFAULT_ENDPOINTS, TemplateCatalog


class TestTemplateCatalog:
    def test_six_templates_in_fixed_order(self, catalog):
        assert catalog.names == [
            "Server Error",
            "Slow Response",
            "Not Found",
            "Malformed JSON",
            "Random Responses",
            "Rate Limited",
        ]
        assert len(catalog) == 6

    @pytest.mark.parametrize(
        "name, status_code, delay_ms",
        [
            ("Server Error", 500, 0),
            ("Slow Response", 200, 5000),
            ("Not Found", 404, 0),
            ("Malformed JSON", 200, 0),
            ("Random Responses", 200, 0),
            ("Rate Limited", 429, 0),
        ],
    )
    def test_template_values(self, catalog, name, status_code, delay_ms):
        template = catalog.get(name)
        assert template.status_code == status_code
        assert template.delay_ms == delay_ms
        assert template.headers == {"Content-Type": "application/json"}

    def test_only_malformed_json_is_flagged(self, catalog):
        flagged = [t.name for t in catalog if t.is_malformed]
        assert flagged == ["Malformed JSON"]
        assert catalog.get("Malformed JSON").response_body == '{"incomplete": json'

    def test_templates_is_read_only_sequence(self, catalog):
        assert isinstance(catalog.templates, tuple)
        assert not hasattr(catalog, "add")

    def test_unknown_template(self, catalog):
        with pytest.raises(KeyError, match="Unknown template"):
            catalog.get("Meteor Strike")

    def test_catalogs_do_not_share_instances(self):
        first, second = TemplateCatalog(), TemplateCatalog()
        first.get("Server Error").headers["X-Test"] = "1"
        assert "X-Test" not in second.get("Server Error").headers

    def test_default_endpoints(self):
        assert DEFAULT_ENDPOINTS == ["/login", "/orders", "/checkout", "/users", "/products", "/payments"]
