"""
Pydantic API contracts, kept separate from the ORM models so the database
schema and the JSON shape can evolve independently.
"""
