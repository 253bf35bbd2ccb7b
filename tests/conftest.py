"""Pytest configuration and shared fixtures."""
import pytest

from formstate import Form, FieldRegistry


@pytest.fixture
def registry():
    """Provide an empty registry."""
    return FieldRegistry()


@pytest.fixture
def form():
    """Provide a form with default options."""
    return Form()


@pytest.fixture
def submissions():
    """Collect (values, actions) pairs passed to a submit handler."""
    return []
