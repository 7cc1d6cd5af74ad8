"""
Storage layer: SQLAlchemy models, engine and transactional scope.
"""
