import pytest

from themepreview.core.models import RenderContext
from themepreview.rendering.dialect import translate, translate_expression
from themepreview.rendering.engine import RenderEngine


@pytest.fixture
def render(site):
    engine = RenderEngine(site.templates, site.fixtures)

    def _render(source, target=None):
        return engine.render(source, RenderContext(target=target or {}))

    return _render


def test_translate_tags():
    assert translate("{% assign x = 1 %}{{ x }}") == "{% set _assigned.x = 1 %}{{ _assigned.x }}"
    assert translate("{%- assign x = 1 -%}") == "{%- set _assigned.x = 1 -%}"
    assert translate("{% unless a %}x{% endunless %}") == "{% if not (_truthy(a)) %}x{% endif %}"
    assert translate("{% elsif b %}") == "{% elif _truthy(b) %}"
    assert translate("a{% comment %}{{ x }}{% endcomment %}b") == "ab"


def test_translate_keeps_raw_blocks():
    source = "{% raw %}{% assign x = 1 %}{% endraw %}"

    assert translate(source) == source


def test_translate_expression_rewrites():
    assert translate_expression("forloop.index") == "loop.index"
    assert translate_expression("forloop.rindex") == "loop.revindex"
    assert translate_expression("a <> b") == "a != b"
    assert translate_expression("tags contains 'x'") == "tags is contains 'x'"
    assert translate_expression("f(PageSize: 10)") == "f(PageSize= 10)"


def test_filter_arguments(render):
    assert render("{{ 'a' | append: 'b' | upcase }}") == "AB"


def test_assign_and_capture(render):
    source = (
        "{% assign name = Target.Name | upcase %}"
        "{% capture greeting %}Hi {{ name }}{% endcapture %}{{ greeting }}"
    )

    assert render(source, {"Name": "bob"}) == "Hi BOB"


def test_case_when(render):
    source = "{% case Target.N %}{% when 1, 2 %}low{% when 3 %}three{% else %}other{% endcase %}"

    assert render(source, {"N": 2}) == "low"
    assert render(source, {"N": 3}) == "three"
    assert render(source, {"N": 9}) == "other"


def test_for_loop_parameters(render):
    items = {"Items": ["a", "b", "c", "d"]}

    assert render("{% for i in Target.Items limit: 2 offset: 1 %}{{ i }}{% endfor %}", items) == "bc"
    assert render("{% for i in Target.Items reversed %}{{ i }}{% endfor %}", items) == "dcba"
    assert render("{% for i in (1..3) %}{{ i }}{% endfor %}") == "123"
    assert (
        render("{% for i in Target.Items %}{% if forloop.last %}{{ forloop.index }}{% endif %}{% endfor %}", items)
        == "4"
    )


def test_contains_operator(render):
    source = "{% if Target.Tags contains 'news' %}yes{% else %}no{% endif %}"

    assert render(source, {"Tags": ["news", "tech"]}) == "yes"
    assert render(source, {"Tags": ["tech"]}) == "no"
    assert render(source, {}) == "no"
    assert render("{% if 'abc' contains 'b' %}yes{% endif %}") == "yes"


def test_nil_empty_and_blank(render):
    assert render("{% if Target.Missing == nil %}nil{% endif %}") == "nil"
    assert render("{% if Target.Items == empty %}empty{% endif %}", {"Items": []}) == "empty"
    assert render("{% if Target.Title == blank %}blank{% endif %}", {"Title": "  "}) == "blank"
    assert render("{% if Target.Missing == empty %}x{% else %}y{% endif %}") == "y"


def test_member_access_prefers_keys(render):
    target = {"Group": {"items": [1, 2], "keys": "k"}}

    assert render("{{ Target.Group.items | size }}{{ Target.Group.keys }}", target) == "2k"
    assert render("{{ Target.List.size }}/{{ Target.List.first }}/{{ Target.List.last }}", {"List": [4, 5, 6]}) == "3/4/6"


def test_missing_values_render_empty(render):
    assert render("[{{ Target.A.B.C }}]") == "[]"


def test_translate_leaves_filter_names_and_loop_variables_alone():
    assert translate("{% assign size = 2 %}{{ Target.Items | size }}") == (
        "{% set _assigned.size = 2 %}{{ Target.Items | size }}"
    )
    assert translate("{% assign i = 0 %}{% for i in x %}{{ i }}{% endfor %}") == (
        "{% set i = 0 %}{% for i in x %}{{ i }}{% endfor %}"
    )


def test_assign_inside_loop_is_visible_after_it(render):
    source = (
        "{% assign total = 0 %}{% for i in Target.Items %}"
        "{% assign total = total | plus: i %}{% endfor %}{{ total }}"
    )

    assert render(source, {"Items": [1, 2, 3]}) == "6"


def test_assign_and_capture_inside_blocks_escape_them(render):
    source = (
        "{% assign found = false %}{% for i in Target.Items %}"
        "{% if i == 2 %}{% assign found = true %}{% endif %}"
        "{% capture last_seen %}#{{ i }}{% endcapture %}{% endfor %}"
        "{{ found }}{{ last_seen }}"
    )

    assert render(source, {"Items": [1, 2, 3]}) == "true#3"


def test_include_reads_values_assigned_before_it(site, render):
    site.template("greeting", "{{ salutation }}, {{ Target.Name }}")

    assert render("{% assign salutation = 'Hi' %}{% include 'greeting' %}", {"Name": "Ann"}) == "Hi, Ann"


def test_translate_condition_groups_from_the_right():
    assert translate("{% if a and b or c %}") == "{% if _truthy(a) and (_truthy(b) or _truthy(c)) %}"
    assert translate("{% if x == 'a or b' %}") == "{% if _truthy(x == 'a or b') %}"


@pytest.mark.parametrize("value", ["", 0, [], {}])
def test_empty_values_are_truthy(render, value):
    assert render("{% if Target.A %}y{% else %}n{% endif %}", {"A": value}) == "y"
    assert render("{% unless Target.A %}n{% endunless %}", {"A": value}) == ""


def test_only_nil_and_false_are_falsy(render):
    source = "{% if Target.A %}y{% else %}n{% endif %}"

    assert render(source, {"A": None}) == "n"
    assert render(source, {"A": False}) == "n"
    assert render(source) == "n"
    assert render("{% if Target.A and Target.B %}a{% elsif Target.B %}b{% endif %}", {"A": None, "B": ""}) == "b"
    assert render("{% if false and false or true %}y{% else %}n{% endif %}") == "n"


def test_first_and_last_on_strings_and_mappings(render):
    assert render("{{ Target.S.first }}{{ Target.S.last }}", {"S": "abc"}) == "ac"
    assert render("[{{ Target.S.first }}]", {"S": ""}) == "[]"
    assert render("{{ Target.M.first | join: '=' }};{{ Target.M.last | join: '=' }}", {"M": {"a": 1, "b": 2}}) == "a=1;b=2"
    assert render("{{ Target.M.first }}", {"M": {"first": "key wins"}}) == "key wins"
