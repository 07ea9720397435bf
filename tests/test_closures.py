"""
Tests for lexical scoping and closures, including the bundled example programs.
"""

import io
import textwrap
from pathlib import Path

import pytest

from treelox import run_source

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def output_of(source: str) -> str:
    out = io.StringIO()
    result = run_source(textwrap.dedent(source), output=out)
    assert result.success, result.error_message
    return out.getvalue()


class TestClosures:
    """Test functions capturing their declaring frame."""

    def test_counter_state_is_private(self):
        source = """
        fun makeCounter() {
            var count = 0;
            fun increment() {
                count = count + 1;
                return count;
            }
            return increment;
        }
        var a = makeCounter();
        var b = makeCounter();
        print a();
        print a();
        print b();
        """
        assert output_of(source) == "1\n2\n1\n"

    def test_closure_sees_later_assignment(self):
        """Closures capture variables, not values."""
        source = """
        fun make() {
            var x = 1;
            fun get() { return x; }
            fun set(v) { x = v; }
            set(5);
            return get;
        }
        print make()();
        """
        assert output_of(source) == "5\n"

    def test_closure_outlives_call(self):
        source = """
        fun adder(n) {
            fun add(x) { return x + n; }
            return add;
        }
        var add2 = adder(2);
        var add10 = adder(10);
        print add2(1);
        print add10(1);
        """
        assert output_of(source) == "3\n11\n"

    def test_static_scope_ignores_later_shadowing(self):
        """A reference keeps pointing at the binding visible where it was written."""
        source = """
        var a = "global";
        {
            fun showA() {
                print a;
            }
            showA();
            var a = "block";
            showA();
        }
        """
        assert output_of(source) == "global\nglobal\n"

    def test_loop_body_frame_per_iteration(self):
        """Locals declared in a loop body are fresh on every pass."""
        source = """
        var first;
        var second;
        for (var i = 0; i < 2; i = i + 1) {
            var j = i;
            fun capture() { return j; }
            if (i == 0) first = capture; else second = capture;
        }
        print first();
        print second();
        """
        assert output_of(source) == "0\n1\n"

    def test_calls_get_separate_frames(self):
        """Recursive calls do not clobber each other's locals."""
        source = """
        fun sum(n) {
            var here = n;
            if (n == 0) return 0;
            var rest = sum(n - 1);
            return here + rest;
        }
        print sum(4);
        """
        assert output_of(source) == "10\n"

    def test_global_function_sees_later_global(self):
        source = """
        fun show() { print later; }
        var later = "defined after";
        show();
        """
        assert output_of(source) == "defined after\n"


class TestExamplePrograms:
    """Run the bundled example programs."""

    @pytest.mark.parametrize("name,expected", [
        ("closure_map.lox", "shadowed\n2\nnil\nstored under nil\nnil\n"),
        ("counter.lox", "1\n2\n1\n3\n"),
    ])
    def test_example_output(self, name, expected):
        source = (EXAMPLES_DIR / name).read_text(encoding="utf-8")
        assert output_of(source) == expected

    def test_fib_example(self):
        source = (EXAMPLES_DIR / "fib.lox").read_text(encoding="utf-8")
        lines = output_of(source).splitlines()
        assert len(lines) == 10
        assert lines[0] == "fib(0) = 0"
        assert lines[-1] == "fib(9) = 34"
