"""BDD tests for order status resolution and consistency repair."""

from pytest_bdd import scenarios

scenarios("features/order_status_resolution.feature")
