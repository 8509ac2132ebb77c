"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area. They never
commit; services own the transaction on the AsyncSession they pass in.
"""
