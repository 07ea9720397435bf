"""
Unit tests for runtime environment frames.
"""

import pytest
from treelox import Environment, InternalError, LoxRuntimeError
from treelox.runtime import number_val, string_val, NIL


class TestEnvironmentFrames:
    """Test define, lookup and assignment across frames."""

    def test_define_and_get(self):
        env = Environment(name="globals")
        env.define("x", number_val(1))
        assert env.get_at(0, "x").data == 1.0
        assert "x" in env

    def test_redefine_replaces(self):
        """define() overwrites an existing binding in the same frame."""
        env = Environment()
        env.define("x", number_val(1))
        env.define("x", string_val("two"))
        assert env.get_at(0, "x").data == "two"

    def test_get_at_depth(self):
        """get_at reads exactly the frame `depth` hops out."""
        globals_ = Environment(name="globals")
        outer = globals_.child("outer")
        inner = outer.child("inner")
        outer.define("a", number_val(1))
        inner.define("a", number_val(2))
        assert inner.get_at(0, "a").data == 2.0
        assert inner.get_at(1, "a").data == 1.0

    def test_assign_at_depth(self):
        """assign_at overwrites the binding in the target frame only."""
        globals_ = Environment(name="globals")
        outer = globals_.child()
        inner = outer.child()
        outer.define("a", number_val(1))
        inner.assign_at(1, "a", number_val(5))
        assert outer.get_at(0, "a").data == 5.0
        assert "a" not in inner

    def test_missing_resolved_name_is_internal_error(self):
        """A resolved name absent from its frame is an interpreter defect."""
        env = Environment().child()
        with pytest.raises(InternalError):
            env.get_at(1, "nope")
        with pytest.raises(InternalError):
            env.assign_at(0, "nope", NIL)

    def test_depth_past_globals_is_internal_error(self):
        env = Environment()
        with pytest.raises(InternalError):
            env.ancestor(1)

    def test_depth_and_globals(self):
        globals_ = Environment(name="globals")
        inner = globals_.child().child()
        assert inner.depth() == 2
        assert inner.globals() is globals_


class TestGlobalAccess:
    """Test name-based global lookup."""

    def test_get_global_from_nested_frame(self):
        globals_ = Environment(name="globals")
        globals_.define("g", number_val(3))
        inner = globals_.child().child()
        assert inner.get_global("g").data == 3.0

    def test_undefined_global_is_runtime_error(self):
        """A missing global is a program error, E401."""
        env = Environment(name="globals").child()
        with pytest.raises(LoxRuntimeError) as exc_info:
            env.get_global("missing")
        assert exc_info.value.code == "E401"

    def test_assign_global_requires_existing_binding(self):
        """Assignment never creates a global."""
        env = Environment(name="globals")
        with pytest.raises(LoxRuntimeError) as exc_info:
            env.assign_global("x", NIL)
        assert exc_info.value.code == "E401"
        assert "x" not in env

    def test_assign_global_updates(self):
        globals_ = Environment(name="globals")
        globals_.define("x", NIL)
        globals_.child().assign_global("x", number_val(7))
        assert globals_.get_global("x").data == 7.0

    def test_frames_compare_by_identity(self):
        """Two empty frames are distinct."""
        assert Environment() != Environment()
