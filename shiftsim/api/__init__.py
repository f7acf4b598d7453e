"""Flask host for shift simulations."""
