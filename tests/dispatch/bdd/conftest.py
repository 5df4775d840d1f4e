"""Shared BDD fixtures and step definitions for the dispatch domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import then


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@then("the step is blocked")
def step_blocked(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)
