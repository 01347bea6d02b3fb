import logging

import pytest

from themepreview.core.errors import (
    LayoutCycleError,
    TemplateNotFound,
    TemplateRenderError,
    TemplateSyntaxError,
)
from themepreview.core.models import OrganizationModel, RenderContext
from themepreview.rendering.engine import RenderEngine
from themepreview.rendering.layout import extract_layout, splice_body


@pytest.fixture
def engine(site):
    return RenderEngine(site.templates, site.fixtures)


def context(**target):
    return RenderContext(target=target)


def test_extract_layout_removes_every_declaration():
    body, parent = extract_layout("{% layout 'base' %}\n<p>x</p>{% layout 'other' %}")

    assert parent == "base"
    assert body == "<p>x</p>"


def test_splice_body_reports_missing_marker():
    assert splice_body("<html></html>", "x") == ("<html></html>", False)


def test_template_without_parent_renders_once(engine):
    assert engine.render("Hello {{ Target.Name }}", context(Name="World")) == "Hello World"


def test_layout_chain_is_applied_innermost_first(site, engine):
    site.template("base", "<html>{% renderbody %}</html>")
    site.template("mid", "{% layout 'base' %}<main>{% renderbody %}</main>")
    site.template("page", "{% layout 'mid' %}\n<p>{{ Target.Title }}</p>")

    assert engine.render_template("page", context(Title="Hi")) == "<html><main><p>Hi</p></main></html>"
    assert engine.layout_chain("page") == ["page", "mid", "base"]


def test_layouts_share_the_render_context(site, engine):
    site.template("base", "<title>{{ Target.Title }}</title>{% renderbody %}")

    html = engine.render("{% layout 'base' %}<h1>{{ Target.Title }}</h1>", context(Title="T"))

    assert html == "<title>T</title><h1>T</h1>"


def test_child_output_is_not_reparsed_by_layout(site, engine):
    site.template("base", "<div>{% renderbody %}</div>")

    html = engine.render("{% layout 'base' %}{{ Target.Code }}", context(Code="{{ x }} {% endraw %}"))

    assert html == "<div>{{ x }} {% endraw %}</div>"


def test_base_layout_rendered_alone_drops_marker(site, engine):
    site.template("base", "<html>{% renderbody %}</html>")

    assert engine.render_template("base", context()) == "<html></html>"


def test_layout_names_resolve_case_insensitively(site, engine):
    site.template("Base_Layout", "[{% renderbody %}]")

    assert engine.render("{% layout 'base_layout' %}x", context()) == "[x]"


def test_missing_layout_raises_not_found(engine):
    with pytest.raises(TemplateNotFound):
        engine.render("{% layout 'nope' %}x", context())


def test_layout_cycle_is_detected(site, engine):
    site.template("a", "{% layout 'b' %}A{% renderbody %}")
    site.template("b", "{% layout 'a' %}B{% renderbody %}")
    site.template("self", "{% layout 'self' %}S")

    with pytest.raises(LayoutCycleError) as excinfo:
        engine.render_template("a", context())
    assert excinfo.value.chain == ["a", "b", "a"]
    with pytest.raises(LayoutCycleError):
        engine.render_template("self", context())


def test_layout_depth_is_bounded(site):
    for level in range(5):
        site.template(f"l{level}", f"{{% layout 'l{level + 1}' %}}{{% renderbody %}}")
    site.template("l5", "{% renderbody %}")
    engine = RenderEngine(site.templates, site.fixtures, max_layout_depth=3)

    with pytest.raises(LayoutCycleError, match="depth"):
        engine.render_template("l0", context())


def test_layout_depth_counts_every_template_in_the_chain(site):
    site.template("a0", "{% layout 'a1' %}x")
    site.template("a1", "{% layout 'a2' %}({% renderbody %})")
    site.template("a2", "[{% renderbody %}]")
    engine = RenderEngine(site.templates, site.fixtures, max_layout_depth=3)

    assert engine.render_template("a0", context()) == "[(x)]"
    assert engine.layout_chain("a0") == ["a0", "a1", "a2"]
    with pytest.raises(LayoutCycleError, match="depth"):
        RenderEngine(site.templates, site.fixtures, max_layout_depth=2).render_template("a0", context())


def test_layout_sees_values_assigned_by_child(site, engine):
    site.template("titled", "<title>{{ page_title }}</title>{% renderbody %}")
    source = "{% layout 'titled' %}{% assign page_title = Target.Name | upcase %}body"

    assert engine.render(source, context(Name="news")) == "<title>NEWS</title>body"


def test_self_include_is_a_render_error(site, engine):
    site.template("loop", "{% include 'loop' %}")

    with pytest.raises(TemplateRenderError, match="too deep"):
        engine.render_template("loop", context())


def test_layout_without_marker_discards_child(site, engine, caplog):
    site.template("static", "<html>static</html>")

    with caplog.at_level(logging.WARNING):
        html = engine.render("{% layout 'static' %}child", context())

    assert html == "<html>static</html>"
    assert "no renderbody" in caplog.text


def test_syntax_error_names_template(site, engine):
    site.template("broken", "line one\n{% if %}x{% endif %}")

    with pytest.raises(TemplateSyntaxError) as excinfo:
        engine.render_template("broken", context())
    assert excinfo.value.name == "broken"
    assert excinfo.value.lineno == 2


def test_runtime_error_is_wrapped(engine):
    with pytest.raises(TemplateRenderError):
        engine.render("{{ 1 | divided_by: 0 }}", context())


def test_includes_resolve_siblings(site, engine):
    site.template("card", "<b>{{ Target.Title }}</b>")

    assert engine.render("{% include 'card' %}", context(Title="X")) == "<b>X</b>"
    with pytest.raises(TemplateNotFound):
        engine.render("{% include 'missing' %}", context())


def test_widgets_are_exposed(engine):
    widgets = {"hero": [{"WidgetType": "banner"}]}

    html = engine.render("{{ Widgets.hero.first.WidgetType }}", context(), widgets)

    assert html == "banner"


def test_organization_time_uses_engine_zone(site):
    engine = RenderEngine(site.templates, site.fixtures, "America/New_York")
    source = "{{ Target.Date | organization_time: '%Y-%m-%d %H:%M' }}"

    assert engine.render(source, context(Date="2024-01-15T15:30:00Z")) == "2024-01-15 10:30"


def test_unknown_zone_falls_back_to_utc(site):
    engine = RenderEngine(site.templates, site.fixtures, "Mars/Olympus")
    source = "{{ Target.Date | organization_time: '%H:%M' }}"

    assert engine.render(source, context(Date="2024-01-15T15:30:00Z")) == "15:30"


def test_query_functions_are_callable_from_templates(site, engine):
    site.fixture("posts", {"Target": {"Items": [{"Title": f"P{i}"} for i in range(25)]}})
    source = (
        "{% assign r = get_content_items(ContentType: 'posts', PageSize: 10) %}"
        "{{ r.Items | size }}/{{ r.TotalCount }}"
    )

    assert engine.render(source, context()) == "10/25"


def test_menu_and_section_functions(blog):
    engine = RenderEngine(blog.templates, blog.fixtures)
    source = "{% for item in get_main_menu().MenuItems %}{{ item.Label }};{% endfor %}"

    assert engine.render(source, context()) == "Home;"
    assert "hero" in engine.render("{{ render_section('hero') }}", context())


def test_groupby_and_json_in_templates(engine):
    target = {"Items": [{"Cat": "a"}, {"Cat": "b"}, {"Cat": "a"}]}
    source = (
        "{% assign groups = Target.Items | groupby: 'Cat' %}"
        "{% for g in groups %}{{ g.key }}={{ g.items | size }};{% endfor %}"
    )

    assert engine.render(source, RenderContext(target=target)) == "a=2;b=1;"
    assert engine.render("{{ Target | json }}", context(A=1)) == '{\n  "A": 1\n}'


def test_organization_and_user_defaults_visible(engine):
    ctx = RenderContext(current_organization=OrganizationModel(organization_name="Acme"))

    html = engine.render("{{ CurrentOrganization.OrganizationName }}|{{ CurrentUser.IsAuthenticated }}", ctx)

    assert html == "Acme|false"
