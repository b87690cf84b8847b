"""Pydantic read models — plain-data views of library objects."""
