"""
Tests for scope frames and the environment chain.
"""

import io

import pytest

from boba import RedeclarationError, UndefinedVariableError
from boba.runtime import Environment, Frame, int_val, string_val, ValueKind


class TestFrame:
    """Test a single frame and its parent chain."""

    def test_declare_and_lookup(self):
        """Declared names can be read back."""
        frame = Frame()
        frame.declare("x", int_val(1))
        assert frame.lookup("x") == int_val(1)

    def test_redeclaration_in_same_frame(self):
        """Declaring a name twice in one frame fails."""
        frame = Frame()
        frame.declare("x", int_val(1))
        with pytest.raises(RedeclarationError) as exc_info:
            frame.declare("x", int_val(2))
        assert exc_info.value.code == "E302"
        assert frame.lookup("x") == int_val(1)

    def test_shadowing_in_child(self):
        """A child frame may shadow a parent's binding."""
        parent = Frame(name="parent")
        parent.declare("x", int_val(1))
        child = Frame(parent=parent, name="child")
        child.declare("x", int_val(2))
        assert child.lookup("x") == int_val(2)
        assert parent.lookup("x") == int_val(1)

    def test_assign_walks_chain(self):
        """assign rebinds the nearest existing slot."""
        parent = Frame()
        parent.declare("x", int_val(1))
        child = Frame(parent=parent)
        child.assign("x", int_val(5))
        assert parent.lookup("x") == int_val(5)
        assert "x" not in child.bindings

    def test_assign_nearest_shadow(self):
        """assign hits the shadowing binding, not the outer one."""
        parent = Frame()
        parent.declare("x", int_val(1))
        child = Frame(parent=parent)
        child.declare("x", int_val(2))
        child.assign("x", int_val(3))
        assert child.lookup("x") == int_val(3)
        assert parent.lookup("x") == int_val(1)

    def test_assign_undefined(self):
        """assign to an unbound name fails."""
        with pytest.raises(UndefinedVariableError) as exc_info:
            Frame().assign("y", int_val(1))
        assert exc_info.value.code == "E301"

    def test_lookup_undefined(self):
        """lookup of an unbound name fails and names it."""
        with pytest.raises(UndefinedVariableError) as exc_info:
            Frame(parent=Frame()).lookup("missing")
        assert "'missing'" in exc_info.value.diagnostic.message

    def test_contains(self):
        """contains checks the whole chain."""
        parent = Frame()
        parent.declare("a", int_val(1))
        child = Frame(parent=parent)
        assert child.contains("a")
        assert not child.contains("b")


class TestEnvironment:
    """Test scoped frame push and the global frame."""

    def test_create_global_has_print(self):
        """A fresh global frame declares the builtins."""
        env = Environment.create_global(io.StringIO())
        assert env.lookup("print").kind == ValueKind.FUNCTION

    def test_new_scope_restores_frame(self):
        """Leaving a scope returns to the previous frame."""
        env = Environment()
        env.declare("x", int_val(1))
        with env.new_scope("child") as frame:
            assert env.current is frame
            env.declare("x", int_val(2))
            assert env.lookup("x") == int_val(2)
        assert env.current is env.global_frame
        assert env.lookup("x") == int_val(1)

    def test_new_scope_restores_on_error(self):
        """A scope exited by an exception still restores the frame."""
        env = Environment()
        with pytest.raises(UndefinedVariableError):
            with env.new_scope("child"):
                env.lookup("nope")
        assert env.current is env.global_frame

    def test_new_scope_with_explicit_parent(self):
        """A call frame chains to the captured frame, not the caller."""
        env = Environment()
        captured = Frame(name="captured")
        captured.declare("secret", string_val("lexical"))
        env.declare("secret", string_val("dynamic"))
        with env.new_scope("call", parent=captured):
            assert env.lookup("secret") == string_val("lexical")

    def test_push_child_frame_alias(self):
        """push_child_frame is the same scoped operation."""
        env = Environment()
        with env.push_child_frame("loop"):
            env.declare("i", int_val(0))
        with pytest.raises(UndefinedVariableError):
            env.lookup("i")

    def test_close_clears_bindings(self):
        """close tears down the global frame."""
        env = Environment.create_global(io.StringIO())
        env.declare("x", int_val(1))
        env.close()
        assert env.global_frame.bindings == {}
        assert env.current is env.global_frame

    def test_independent_environments(self):
        """Two environments share no bindings."""
        a = Environment.create_global(io.StringIO())
        b = Environment.create_global(io.StringIO())
        a.declare("x", int_val(1))
        assert not b.current.contains("x")
