"""Tests for validation/sexpr.py and validation/svg.py - the file readers."""
import pytest

from kicad_jlcconvert.validation import sexpr
from kicad_jlcconvert.validation.svg import parse_attributes, parse_number_pair, parse_svg, unescape


class TestSexprParse:
    def test_nested_lists(self):
        tree = sexpr.parse('(footprint "R0603" (layer "F.Cu") (at 1.5 -2))')
        assert tree == ["footprint", "R0603", ["layer", "F.Cu"], ["at", "1.5", "-2"]]

    def test_empty_string_atom(self):
        assert sexpr.parse('(pad "" np_thru_hole)') == ["pad", "", "np_thru_hole"]

    def test_escaped_quotes(self):
        assert sexpr.parse(r'(descr "say \"hi\"")') == ["descr", 'say "hi"']

    def test_parens_inside_string(self):
        assert sexpr.parse('(name "A(B)")') == ["name", "A(B)"]

    def test_only_first_expression(self):
        assert sexpr.parse("(a) (b)") == ["a"]

    def test_missing_close(self):
        with pytest.raises(sexpr.SexprError):
            sexpr.parse("(a (b)")

    def test_stray_close(self):
        with pytest.raises(sexpr.SexprError):
            sexpr.parse(")")

    def test_atom_outside_list(self):
        with pytest.raises(sexpr.SexprError):
            sexpr.parse("hello (a)")

    def test_unterminated_string(self):
        with pytest.raises(sexpr.SexprError):
            sexpr.parse('(a "open')

    def test_sexpr_error_is_value_error(self):
        assert issubclass(sexpr.SexprError, ValueError)


class TestSexprHelpers:
    def setup_method(self):
        self.tree = sexpr.parse('(fp (pad "1" (at 0 0)) (pad "2" (at 1 0)) (group (pad "3")))')

    def test_children_direct_only(self):
        assert [p[1] for p in sexpr.children(self.tree, "pad")] == ["1", "2"]

    def test_child_first_match(self):
        assert sexpr.child(self.tree, "pad")[1] == "1"
        assert sexpr.child(self.tree, "missing") is None

    def test_find_all_recursive(self):
        assert [p[1] for p in sexpr.find_all(self.tree, "pad")] == ["1", "2", "3"]

    def test_head(self):
        assert sexpr.head(self.tree) == "fp"
        assert sexpr.head("atom") is None

    def test_to_float(self):
        assert sexpr.to_float("1.25") == 1.25
        assert sexpr.to_float("oval", 3.0) == 3.0
        assert sexpr.to_float(["x"]) == 0.0


class TestParseSvg:
    def test_tree(self):
        root = parse_svg('<?xml version="1.0"?><svg width="10"><g id="a"><rect width="3"/></g><g id="b"/></svg>')
        svg = root.children[0]
        assert svg.tag == "svg"
        assert svg.get("width") == "10"
        assert [g.get("id") for g in svg.children] == ["a", "b"]
        assert svg.children[0].children[0].tag == "rect"

    def test_text_and_entities(self):
        root = parse_svg("<svg><text>A&amp;B</text></svg>")
        assert root.first("text").text == "A&B"

    def test_comments_skipped(self):
        root = parse_svg("<svg><!-- <g id='x'/> --><g id='y'/></svg>")
        assert [el.get("id") for el in root.iter() if el.tag == "g"] == ["y"]

    def test_unclosed_elements(self):
        root = parse_svg("<svg><g><circle r='1'>")
        assert root.first("circle").get("r") == "1"

    def test_stray_closer_ignored(self):
        root = parse_svg("<svg></g><rect/></svg>")
        assert root.first("rect") is not None

    def test_find_all(self):
        root = parse_svg('<svg><g c_partid="part_pad"/><g c_partid="part_via"/></svg>')
        found = root.find_all(lambda el: el.get("c_partid") == "part_pad")
        assert len(found) == 1


class TestSvgHelpers:
    def test_attributes(self):
        attrs = parse_attributes(' a="1" b=\'two\' c=3 flag')
        assert attrs == {"a": "1", "b": "two", "c": "3", "flag": ""}

    def test_unescape(self):
        assert unescape("&lt;x&gt; &quot;q&quot;") == '<x> "q"'

    def test_number_pair(self):
        assert parse_number_pair("3997,3000") == (3997.0, 3000.0)
        assert parse_number_pair(" 1.5  -2 ") == (1.5, -2.0)

    def test_number_pair_invalid(self):
        assert parse_number_pair("") is None
        assert parse_number_pair("1") is None
        assert parse_number_pair("a,b") is None
