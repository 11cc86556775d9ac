"""
Tests for the jinja2 template engine.
"""

import pytest

from marpdeck.errors import TemplateRenderError


class TestRender:
    """Tests for TemplateEngine.render."""

    def test_interpolation(self, engine):
        assert engine.render("# {{ content.title }}", {"content": {"title": "Hi"}}) == "# Hi"

    def test_undefined_renders_empty(self, engine):
        """Undefined names and chained lookups render as the empty string."""
        out = engine.render("[{{ missing }}][{{ content.image.caption }}]", {"content": {}})

        assert out == "[][]"

    def test_none_renders_empty(self, engine):
        """YAML nulls print as nothing, like undefined values."""
        out = engine.render(
            "by [{{ meta.author }}] sub [{{ content.subtitle }}]",
            {"meta": {"author": None}, "content": {"subtitle": None}},
        )

        assert out == "by [] sub []"

    def test_mapping_attribute_uses_keys_only(self, engine):
        """``content.items`` is the content field, never ``dict.items``."""
        out = engine.render("{% for i in content.items %}{{ i }};{% endfor %}", {"content": {"items": ["a", "b"]}})

        assert out == "a;b;"
        assert engine.render("[{{ content.items }}]", {"content": {}}) == "[]"

    def test_if_else(self, engine):
        template = "{% if content.show %}yes{% else %}no{% endif %}"

        assert engine.render(template, {"content": {"show": True}}) == "yes"
        assert engine.render(template, {"content": {}}) == "no"

    def test_loop(self, engine):
        out = engine.render(
            "{% for item in items %}{{ loop.index }}. {{ item }}\n{% endfor %}",
            {"items": ["a", "b"]},
        )

        assert out == "1. a\n2. b\n"

    def test_filters(self, engine):
        context = {"name": "  spaced  ", "html": "<b>", "items": [1, 2, 3], "none": None}

        assert engine.render("{{ name | trim }}", context) == "spaced"
        assert engine.render("{{ html | escape }}", context) == "&lt;b&gt;"
        assert engine.render("{{ items | length }}", context) == "3"
        assert engine.render("{{ missing | default('x') }}", context) == "x"
        assert engine.render("{{ none | default('x') }}", context) == "x"

    def test_no_autoescape(self, engine):
        """HTML passes through unless the template escapes it."""
        assert engine.render("{{ html }}", {"html": "<div>"}) == "<div>"

    def test_callable_output_spliced_verbatim(self, engine):
        context = {"icon": lambda name: f'<span class="{name}">&</span>'}

        assert engine.render("{{ icon('home') }}", context) == '<span class="home">&</span>'

    def test_block_tags_leave_no_blank_lines(self, engine):
        template = "a\n{% if flag %}\nb\n{% endif %}\nc"

        assert engine.render(template, {"flag": True}) == "a\nb\nc"
        assert engine.render(template, {"flag": False}) == "a\nc"


class TestRenderErrors:
    """Tests for template errors."""

    def test_syntax_error(self, engine):
        with pytest.raises(TemplateRenderError) as exc_info:
            engine.render("{% if %}", {})

        assert exc_info.value.kind == "Render"

    def test_runtime_error(self, engine):
        with pytest.raises(TemplateRenderError):
            engine.render("{{ missing() }}", {})
