"""Database engine and session management.

Use explicit imports: ``from autogestao.db.postgres import Base``.
"""
