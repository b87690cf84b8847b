"""Event names and publish outcomes."""
