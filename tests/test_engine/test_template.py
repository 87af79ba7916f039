"""Tests for template parsing and rendering (skelgen.engine.template).

Covers:
- Interpolation, inline guards, block conditionals and iteration
- Nesting and loop-variable scoping
- The standalone-control-line whitespace policy
- Syntax errors with line numbers
- RenderError wrapping with line and path
"""

from __future__ import annotations

import pytest

from skelgen.engine import (
    RenderError,
    Scope,
    Template,
    TemplateSyntaxError,
    TypeMismatch,
    UnresolvedPath,
)
from skelgen.engine.template import Conditional, Interpolation, Iteration, Text


pytestmark = pytest.mark.unit


def _render(source: str, **bindings) -> str:
    return Template(source).render(bindings)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_literal_only(self):
        template = Template("no tags here\n")
        assert template.chunks == (Text("no tags here\n"),)

    def test_chunk_kinds(self):
        template = Template(
            "a<%= x %>b\n<% if f %>\nc\n<% else %>\nd\n<% end %>\n<% each i in xs %>\ne\n<% end %>\n"
        )
        kinds = [type(chunk) for chunk in template.chunks]
        assert kinds == [Text, Interpolation, Text, Conditional, Iteration]

    def test_chunk_lines(self):
        template = Template("one\n<%= x %>\n<% if f %>\n<% end %>\n")
        interpolation = template.chunks[1]
        conditional = template.chunks[3]
        assert interpolation.line == 2
        assert conditional.line == 3

    def test_unless_compiles_to_negated_conditional(self):
        template = Template("<% unless f %>x<% end %>")
        assert _render("<% unless f %>x<% end %>", f=False) == "x"
        assert isinstance(template.chunks[0], Conditional)

    def test_comment_is_dropped(self):
        assert _render("a\n<%# a note %>\nb\n") == "a\nb\n"


class TestSyntaxErrors:
    def test_unclosed_block(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            Template("a\n<% if f %>\nb\n")
        assert exc_info.value.line == 2
        assert "never closed" in str(exc_info.value)

    def test_stray_end(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            Template("a\n\n<% end %>\n")
        assert exc_info.value.line == 3

    def test_else_inside_each(self):
        with pytest.raises(TemplateSyntaxError):
            Template("<% each i in xs %><% else %><% end %>")

    def test_double_else(self):
        with pytest.raises(TemplateSyntaxError):
            Template("<% if f %>a<% else %>b<% else %>c<% end %>")

    def test_unknown_tag(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            Template("<% while f %><% end %>")
        assert "unknown tag" in str(exc_info.value)

    def test_malformed_each(self):
        with pytest.raises(TemplateSyntaxError):
            Template("<% each in xs %><% end %>")

    def test_each_needs_a_path(self):
        with pytest.raises(TemplateSyntaxError):
            Template('<% each i in "xs" %><% end %>')

    def test_bad_expression_reports_line(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            Template("one\ntwo\n<%= a. %>", name="broken.tmpl")
        assert exc_info.value.line == 3
        assert str(exc_info.value).startswith("broken.tmpl:3:")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_interpolation(self):
        assert _render("Hello <%= name %>!", name="nav") == "Hello nav!"

    def test_inline_unless(self):
        source = "(name<%= \", initial_state\" unless fixed %>)"
        assert _render(source, fixed=False) == "(name, initial_state)"
        assert _render(source, fixed=True) == "(name)"

    def test_inline_if(self):
        assert _render("<%= 'x' if f %>", f=True) == "x"
        assert _render("<%= 'x' if f %>", f=False) == ""

    def test_if_else(self):
        source = "<% if f %>yes<% else %>no<% end %>"
        assert _render(source, f=True) == "yes"
        assert _render(source, f=False) == "no"

    def test_each_preserves_order(self):
        source = "<% each x in xs %><%= x %>,<% end %>"
        assert _render(source, xs=["c", "a", "b"]) == "c,a,b,"

    def test_each_over_empty_sequence(self):
        assert _render("[<% each x in xs %><%= x %><% end %>]", xs=[]) == "[]"

    def test_nested_blocks(self):
        source = "<% each x in xs %><% if x.empty %>-<% else %><% each y in ys %><%= x %><%= y %> <% end %><% end %><% end %>"
        assert _render(source, xs=["a", "", "b"], ys=["1", "2"]) == "a1 a2 -b1 b2 "

    def test_loop_variable_shadows_only_inside_body(self):
        source = "<%= op %>|<% each op in items %><%= op %>,<% end %>|<%= op %>"
        assert _render(source, op="outer", items=["a", "b"]) == "outer|a,b,|outer"

    def test_loop_variable_not_visible_after_loop(self):
        with pytest.raises(RenderError):
            _render("<% each x in xs %><% end %><%= x %>", xs=["a"])

    def test_equality_guard(self):
        source = '<% each x in xs %><% if x == "b" %>[<%= x %>]<% else %><%= x %><% end %><% end %>'
        assert _render(source, xs=["a", "b", "c"]) == "a[b]c"

    def test_render_accepts_scope_and_extra_bindings(self):
        template = Template("<%= a %><%= b %>")
        assert template.render(Scope({"a": "1"}), b="2") == "12"

    def test_extra_bindings_shadow(self):
        assert Template("<%= a %>").render({"a": "1"}, a="2") == "2"

    def test_deterministic(self, controller):
        template = Template(
            "<% each op in task.self_operations %><%= op.signature %>\n<% end %>"
        )
        first = template.render({"task": controller})
        second = template.render({"task": controller})
        assert first == second


# ---------------------------------------------------------------------------
# Whitespace policy
# ---------------------------------------------------------------------------


class TestWhitespace:
    def test_standalone_block_lines_vanish(self):
        source = "start\n<% if f %>\nyes\n<% end %>\nend\n"
        assert _render(source, f=True) == "start\nyes\nend\n"
        assert _render(source, f=False) == "start\nend\n"

    def test_indented_standalone_tags_vanish(self):
        source = "a\n    <% if f %>\n    x\n    <% end %>\nb\n"
        assert _render(source, f=True) == "a\n    x\nb\n"
        assert _render(source, f=False) == "a\nb\n"

    def test_skipped_iterations_leave_no_blank_lines(self):
        source = "a\n<% each x in xs %>\n<% if f %>\n<%= x %>\n<% end %>\n<% end %>\nb\n"
        assert _render(source, xs=["1", "2", "3"], f=False) == "a\nb\n"
        assert _render(source, xs=["1", "2", "3"], f=True) == "a\n1\n2\n3\nb\n"

    def test_tag_sharing_a_line_with_text_is_kept_in_place(self):
        assert _render("x <% if f %>y<% end %>\n", f=False) == "x \n"

    def test_interpolation_lines_are_never_removed(self):
        assert _render("<%= e %>\nz", e="") == "\nz"

    def test_standalone_tag_on_last_line_without_newline(self):
        assert _render("a\n<% if f %>\nb\n<% end %>", f=True) == "a\nb\n"

    def test_line_with_several_control_tags_vanishes(self):
        assert _render("a\n<% if f %><% end %>\nb\n", f=False) == "a\nb\n"
        assert _render("a\n<% if f %><% end %>\nb\n", f=True) == "a\nb\n"

    def test_nested_openers_and_closers_sharing_lines(self):
        source = "a\n  <% each x in xs %> <% if f %>\n<%= x %>\n<% end %><% end %>  \nb\n"
        assert _render(source, xs=["1", "2"], f=False) == "a\nb\n"
        assert _render(source, xs=["1", "2"], f=True) == "a\n1\n2\nb\n"

    def test_control_tags_around_interpolation_keep_the_line(self):
        source = "a\n<% if f %><%= x %><% end %>\nb\n"
        assert _render(source, f=True, x="1") == "a\n1\nb\n"
        assert _render(source, f=False, x="1") == "a\n\nb\n"

    def test_comment_sharing_a_line_with_control_tags(self):
        assert _render("a\n<%# note %><% if f %>\nb\n<% end %>\n", f=True) == "a\nb\n"


class TestTagBoundaries:
    def test_close_marker_inside_string_literal(self):
        assert _render('<%= "a%>b" %>') == "a%>b"
        assert _render("<%= '%>' unless f %>!", f=False) == "%>!"

    def test_apostrophe_in_comment(self):
        assert _render("<%# don't %>x<%= 'y' %>") == "xy"

    def test_multiline_tag(self):
        assert _render("<%= 'x'\n   unless f %>", f=False) == "x"


# ---------------------------------------------------------------------------
# Render errors
# ---------------------------------------------------------------------------


class TestRenderErrors:
    def test_unresolved_path_is_wrapped(self, controller):
        template = Template("line one\n<%= task.basname %>\n", name="Task.cpp.tmpl")
        with pytest.raises(RenderError) as exc_info:
            template.render({"task": controller})
        error = exc_info.value
        assert isinstance(error.cause, UnresolvedPath)
        assert error.path == "task.basname"
        assert error.line == 2
        assert error.template_name == "Task.cpp.tmpl"
        assert "task.basname" in str(error)

    def test_error_inside_loop_reports_inner_line(self, controller):
        source = "header\n<% each op in task.self_operations %>\n<%= op.nme %>\n<% end %>\n"
        with pytest.raises(RenderError) as exc_info:
            Template(source).render({"task": controller})
        assert exc_info.value.line == 3
        assert exc_info.value.path == "op.nme"

    def test_non_boolean_guard(self, controller):
        with pytest.raises(RenderError) as exc_info:
            Template("<% if task.basename %>x<% end %>").render({"task": controller})
        assert isinstance(exc_info.value.cause, TypeMismatch)

    def test_non_boolean_inline_guard(self, controller):
        with pytest.raises(RenderError) as exc_info:
            Template("<%= 'x' unless task.basename %>").render({"task": controller})
        assert isinstance(exc_info.value.cause, TypeMismatch)

    def test_iterating_a_non_sequence(self, controller):
        with pytest.raises(RenderError) as exc_info:
            Template("<% each c in task.basename %><% end %>").render({"task": controller})
        assert isinstance(exc_info.value.cause, TypeMismatch)

    def test_skipped_branch_is_not_evaluated(self, controller):
        source = "<% if task.fixed_initial_state? %><%= task.missing %><% end %>ok"
        assert Template(source).render({"task": controller}) == "ok"
