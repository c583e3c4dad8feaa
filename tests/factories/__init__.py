"""Test data factories."""

from tests.factories.signup import SignupFactory


__all__ = ["SignupFactory"]
