"""
Service layer: business logic on top of a SQLAlchemy session
"""
