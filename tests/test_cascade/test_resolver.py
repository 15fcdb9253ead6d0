"""Tests for cascade resolution and dynamic-override promotion."""

import lxml.html
import pytest

from styliner.cascade.resolver import overrides, to_style_string
from styliner.context import DynamicInfo, PropertyGroup
from styliner.stylesheet.model import INLINE_SPECIFICITY, Property, Specificity


def group(specificity, index, important=False):
    return PropertyGroup(values=[], specificity=specificity, index=index, important=important)


def style_block(html: str) -> str:
    root = lxml.html.fromstring(html)
    return "".join(el.text or "" for el in root.iter("style"))


# ---------------------------------------------------------------------------
# overrides()
# ---------------------------------------------------------------------------


class TestOverrides:
    def test_higher_specificity_wins_regardless_of_order(self):
        high = group(Specificity(0, 1, 0, 0), 0)
        low = group(Specificity(0, 0, 1, 0), 5)
        assert not overrides(high, low)
        assert overrides(low, high)

    def test_later_rule_wins_on_equal_specificity(self):
        first = group(Specificity(0, 0, 0, 1), 0)
        second = group(Specificity(0, 0, 0, 1), 1)
        assert overrides(first, second)
        assert not overrides(second, first)

    def test_important_beats_specificity(self):
        important = group(Specificity(0, 0, 1, 0), 0, important=True)
        specific = group(Specificity(0, 1, 0, 0), 1)
        assert not overrides(important, specific)
        assert overrides(specific, important)

    def test_two_important_rules_use_specificity(self):
        a = group(Specificity(0, 1, 0, 0), 0, important=True)
        b = group(Specificity(0, 0, 0, 1), 1, important=True)
        assert not overrides(a, b)

    def test_inline_beats_rule_of_equal_importance(self):
        inline = group(INLINE_SPECIFICITY, 10)
        rule = group(Specificity(0, 9, 9, 9), 3)
        assert not overrides(inline, rule)
        assert overrides(rule, inline)

    def test_important_rule_beats_plain_inline(self):
        inline = group(INLINE_SPECIFICITY, 10)
        rule = group(Specificity(0, 0, 0, 1), 0, important=True)
        assert overrides(inline, rule)

    def test_important_inline_beats_important_rule(self):
        inline = group(INLINE_SPECIFICITY, 10, important=True)
        rule = group(Specificity(0, 5, 0, 0), 0, important=True)
        assert not overrides(inline, rule)

    def test_dynamic_info_compares_like_a_group(self):
        info = DynamicInfo(Property("color", "red"), Specificity(0, 0, 2, 0), 3, 0)
        assert overrides(group(Specificity(0, 0, 0, 1), 0), info)


class TestStyleString:
    def test_compact(self):
        props = [Property("color", "red"), Property("margin-top", "0", important=True)]
        assert to_style_string(props, compact=True) == "color:red;margin-top:0!important"

    def test_pretty(self):
        props = [Property("color", "red"), Property("margin-top", "0")]
        assert to_style_string(props) == "color: red; margin-top: 0;"

    def test_empty(self):
        assert to_style_string([]) is None


# ---------------------------------------------------------------------------
# Example documents
# ---------------------------------------------------------------------------


class TestCascade:
    def test_later_same_specificity_rule_wins(self, inline):
        out = inline("p { color: red; } p { color: blue; }", "<p>x</p>")
        assert out == '<p style="color:blue">x</p>'

    def test_importance_beats_higher_specificity(self, inline):
        out = inline(".a { color: red !important; } #x { color: blue; }", '<p class="a" id="x">x</p>')
        assert out == '<p class="a" id="x" style="color:red!important">x</p>'

    def test_higher_specificity_wins_regardless_of_order(self, inline):
        out = inline("#x { color: blue; } p { color: red; }", '<p id="x">x</p>')
        assert 'style="color:blue"' in out

    def test_shorthand_is_expanded(self, inline):
        out = inline("p { margin: 1px 2px; }", "<p>x</p>")
        assert 'style="margin-top:1px;margin-right:2px;margin-bottom:1px;margin-left:2px"' in out

    def test_important_rule_beats_inline_style(self, inline):
        out = inline("p { color: blue !important; }", '<p style="color:red">x</p>')
        assert 'style="color:blue!important"' in out

    def test_inline_style_beats_plain_rule(self, inline):
        out = inline("p { color: blue; font-weight: bold }", '<p style="color:red">x</p>')
        assert 'style="color:red;font-weight:bold"' in out

    def test_important_inline_beats_important_rule(self, inline):
        out = inline("p { color: blue !important; }", '<p style="color:red !important">x</p>')
        assert 'style="color:red!important"' in out

    def test_edge_overrides_shorthand(self, inline):
        out = inline("p { padding: 0; } .a { padding-left: 5px }", '<p class="a">x</p>')
        assert "padding-left:5px" in out
        assert "padding-left:0" not in out

    def test_vendor_fallbacks_are_kept_together(self, inline):
        out = inline(
            "p { background: red; } .a { background: #fff; background: rgba(0,0,0,.5) }",
            '<p class="a">x</p>',
        )
        assert 'style="background:#fff;background:rgba(0,0,0,.5)"' in out

    def test_unmatched_elements_are_untouched(self, inline):
        out = inline(".a { color: red }", "<p>x</p><p class='a'>y</p>")
        assert out == '<p>x</p><p class="a" style="color:red">y</p>'

    def test_fragment_has_no_enclosing_element(self, inline):
        css = "div p { color: red } div > span { color: blue } * > em { color: green } :not(p) b { color: gray }"
        html = "<p>x</p><span>y</span><em>z</em><b>w</b>"
        assert inline(css, html) == html

    def test_fragment_top_level_elements_still_match(self, inline):
        out = inline("p + span { color: red } span:first-child { color: blue }", "<span>a</span><p>x</p><span>y</span>")
        assert out == '<span style="color:blue">a</span><p>x</p><span style="color:red">y</span>'

    def test_descendant_selectors(self, inline):
        out = inline("div p { color: red } div > span { color: blue }", "<div><p><span>a</span></p><span>b</span></div>")
        assert '<p style="color:red"><span>a</span></p><span style="color:blue">b</span>' in out

    def test_static_rules_leave_no_style_block(self, inline):
        out = inline("p { color: red }", "<p>x</p>")
        assert "<style" not in out

    def test_pretty_output(self, inline):
        out = inline("p { color: red; margin-top: 0 }", "<p>x</p>", compact=False)
        assert 'style="color: red; margin-top: 0;"' in out


# ---------------------------------------------------------------------------
# Dynamic rules
# ---------------------------------------------------------------------------


class TestDynamicRules:
    def test_hover_rule_is_not_inlined(self, inline):
        out = inline("a:hover { color: green; }", '<a href="#">x</a>')
        assert "<a href=\"#\">x</a>" in out
        assert style_block(out) == "a:hover{color:green}"

    @pytest.mark.parametrize("selector", ["p::after", "p::before", "p:first-line", "p:first-letter"])
    def test_pseudo_elements_stay_in_style_block(self, inline, selector):
        out = inline(f"{selector} {{ color: red !important }} p {{ margin-top: 0 }}", "<p>x</p>")
        assert 'style="margin-top:0"' in out
        assert "color" not in out.split("<p")[1]
        assert f"{selector}{{color:red!important}}" in style_block(out)

    def test_outranking_dynamic_rule_is_promoted(self, inline):
        out = inline("p { color: red; } .x:hover { color: blue; }", '<p class="x">a</p>')
        assert 'style="color:red"' in out
        assert style_block(out) == ".x:hover{color:blue!important}"

    def test_outranked_dynamic_rule_is_not_promoted(self, inline):
        out = inline("#y { color: red; } p:hover { color: blue; }", '<p id="y">a</p>')
        assert 'style="color:red"' in out
        assert style_block(out) == "p:hover{color:blue}"

    def test_inline_style_prevents_promotion(self, inline):
        out = inline("p:hover { color: blue; }", '<p style="color:red">a</p>')
        assert 'style="color:red"' in out
        assert style_block(out) == "p:hover{color:blue}"

    def test_other_matching_elements_are_made_important(self, inline):
        css = "p { color: red; } #y { color: green; } .x:hover { color: blue; }"
        out = inline(css, '<p class="x">a</p><p class="x" id="y">b</p><p>c</p>')
        assert '<p class="x" style="color:red">a</p>' in out
        assert '<p class="x" id="y" style="color:green!important">b</p>' in out
        assert '<p style="color:red">c</p>' in out
        assert style_block(out) == ".x:hover{color:blue!important}"

    def test_already_important_dynamic_rule_is_untouched(self, inline):
        out = inline("p { color: red; } p:hover { color: blue !important; }", "<p>a</p>")
        assert 'style="color:red"' in out
        assert style_block(out) == "p:hover{color:blue!important}"

    def test_promotion_only_touches_the_overridden_property(self, inline):
        out = inline("p { color: red; } p:focus { color: blue; outline: none }", "<p>a</p>")
        assert style_block(out) == "p:focus{color:blue!important;outline:none}"

    def test_media_rules_are_kept(self, inline):
        css = "p { color: red } @media (max-width:480px) { p { color: blue } }"
        out = inline(css, "<p>a</p>")
        assert 'style="color:red"' in out
        assert style_block(out) == "@media (max-width:480px){p{color:blue!important}}"

    def test_yahoo_fix(self, inline):
        css = "@media (max-width:480px){ .x{color:red} }"
        html = '<html><head></head><body><p class="x">a</p></body></html>'
        out = inline(css, html, fix_yahoo_mq=True)
        root = lxml.html.fromstring(out)
        assert "YMQ-Fix-Root" in root.get("class").split()
        assert ".YMQ-Fix-Root .x{color:red}" in style_block(out)
        assert root.find(".//p").get("style") is None

    def test_style_block_goes_into_head(self, inline):
        html = "<html><head><title>t</title></head><body><a href='#'>x</a></body></html>"
        out = inline("a:hover { color: green }", html)
        head = lxml.html.fromstring(out).find("head")
        assert [el.tag for el in head] == ["title", "style"]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class TestOptions:
    def test_keep_rules_only_rewrites_style_attributes(self, inline):
        out = inline("p { color: red }", '<p style="margin: 1px">x</p><p>y</p>', keep_rules=True)
        assert 'style="margin-top:1px;margin-right:1px;margin-bottom:1px;margin-left:1px"' in out
        assert "<p>y</p>" in out
        assert style_block(out) == "p{color:red}"

    def test_no_css_drops_the_style_block(self, inline):
        out = inline("p { color: red } a:hover { color: green }", "<p>x</p>", no_css=True)
        assert "<style" not in out
        assert 'style="color:red"' in out

    def test_static_link(self, inline):
        out = inline("a:link { color: red }", '<a href="#">x</a>', static_link=True)
        assert 'style="color:red"' in out
