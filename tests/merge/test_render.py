"""
Tests for template token rendering.
"""

from standards_sync.merge.render import build_tokens, render_template, unresolved_tokens
from standards_sync.merge.stack import stack_profile
from standards_sync.simulator.fixtures import TEMPLATE


class TestBuildTokens:
    def test_every_template_token_resolves(self, tmp_path):
        tokens = build_tokens(stack_profile(tmp_path), standards_path="../standards/", project_name="svc")

        rendered = render_template(TEMPLATE, tokens)

        assert unresolved_tokens(rendered) == []
        assert "defined in `../standards`." in rendered
        assert "| Test | `make test` |" in rendered
        assert tokens["PINNED_VERSION"] == "latest"

    def test_root_standards_path_kept(self, tmp_path):
        tokens = build_tokens(stack_profile(tmp_path), standards_path="/", project_name="svc")

        assert tokens["STANDARDS_PATH"] == "/"

    def test_pinned_version(self, tmp_path):
        tokens = build_tokens(
            stack_profile(tmp_path), standards_path="x", project_name="svc", pinned_version="v1.0.0"
        )

        assert tokens["PINNED_VERSION"] == "v1.0.0"


class TestRenderTemplate:
    def test_unknown_tokens_left_intact(self):
        assert render_template("{{A}} {{B}}", {"A": "1"}) == "1 {{B}}"

    def test_lowercase_braces_are_not_tokens(self):
        assert render_template("{{not_a_token}}", {"not_a_token": "x"}) == "{{not_a_token}}"

    def test_unresolved_in_first_seen_order(self):
        assert unresolved_tokens("{{B}} {{A}} {{B}}") == ["B", "A"]
