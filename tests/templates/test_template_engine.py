"""Tests for template rendering."""

from __future__ import annotations

import pytest

from specgen.templates import (
    MissingPlaceholderError,
    TemplateEngine,
    TemplateError,
    TemplateSyntaxError,
    UnsupportedTemplateFeature,
)


@pytest.mark.parametrize(
    "template, value, expected",
    [
        ("Hello {{name}}", "my_project", "Hello my_project"),
        ("struct {{Name}} {}", "my_project", "struct MyProject {}"),
        ("let {{name_snake}} = 42;", "MyProject", "let my_project = 42;"),
        ("package-name: {{name-kebab}}", "MyProject", "package-name: my-project"),
        ("const {{NAME}} = 1;", "my_project", "const MY_PROJECT = 1;"),
        ("function {{nameCamel}}() {}", "my_project", "function myProject() {}"),
    ],
)
def test_render_simple_case_transforms(template: str, value: str, expected: str) -> None:
    engine = TemplateEngine({"name": value})

    assert engine.render_simple(template) == expected


def test_render_matches_render_simple_for_plain_templates() -> None:
    engine = TemplateEngine({"name": "my_project"})
    template = "class {{Name}}:\n    key = '{{name-kebab}}'\n"

    result = engine.render(template)

    assert result.content == engine.render_simple(template)
    assert result.content == "class MyProject:\n    key = 'my-project'\n"
    assert result.placeholders_used == ["name"]


def test_unbound_placeholder_fails_without_output() -> None:
    engine = TemplateEngine({"name": "demo"})

    with pytest.raises(MissingPlaceholderError) as excinfo:
        engine.render("{{name}} and {{other}}")
    assert excinfo.value.name == "other"

    with pytest.raises(TemplateError):
        engine.render_simple("{{missing}}")


def test_required_placeholders_are_checked_before_rendering() -> None:
    engine = TemplateEngine({"name": "demo"}, required=["author"])

    with pytest.raises(MissingPlaceholderError):
        engine.render("static text only")

    engine.add_value("author", "someone")
    assert engine.render("static text only").content == "static text only"


def test_context_layers_values_for_one_call() -> None:
    engine = TemplateEngine({"name": "base"})

    assert engine.render("{{name}}", {"name": "override"}).content == "override"
    assert engine.render("{{name}}").content == "base"


def test_conditionals_render_when_value_is_bound() -> None:
    engine = TemplateEngine({"name": "demo", "license": "MIT"})
    template = "{{name}}{{#if license}} ({{LICENSE}}){{/if}}{{#if author}} by {{author}}{{/if}}"

    result = engine.render(template)

    assert result.content == "demo (MIT)"
    assert result.placeholders_used == ["name", "license", "author"]


def test_loops_and_includes_are_recognised_but_unsupported() -> None:
    engine = TemplateEngine({"items": "a"})

    with pytest.raises(UnsupportedTemplateFeature):
        engine.render("{{#each items}}x{{/each}}")
    with pytest.raises(UnsupportedTemplateFeature):
        engine.render("{{> header}}")


@pytest.mark.parametrize(
    "template",
    [
        "a{{#if missing}}{{> partial}}{{/if}}b",
        "{{#if missing}}{{#each items}}x{{/each}}{{/if}}",
        "{{#if name}}{{#if missing}}{{> footer}}{{/if}}{{/if}}",
    ],
)
def test_loops_and_includes_fail_inside_skipped_conditionals(template: str) -> None:
    engine = TemplateEngine({"name": "demo"})

    with pytest.raises(UnsupportedTemplateFeature, match="not supported"):
        engine.render(template)


def test_render_simple_rejects_block_syntax() -> None:
    engine = TemplateEngine({"flag": "yes"})

    with pytest.raises(UnsupportedTemplateFeature):
        engine.render_simple("{{#if flag}}x{{/if}}")


@pytest.mark.parametrize("template", ["{{}}", "text {{name", "a {{ }} b"])
def test_render_simple_reports_syntax_errors(template: str) -> None:
    engine = TemplateEngine({"name": "demo"})

    with pytest.raises(TemplateSyntaxError):
        engine.render_simple(template)


def test_nested_values_are_resolved() -> None:
    engine = TemplateEngine({"name": "my_project", "module": "{{name_snake}}.core"})

    assert engine.render_simple("import {{module}}") == "import my_project.core"
