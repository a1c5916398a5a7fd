"""Owner repositories.

The analytics service and the owner routes only see the abstract
repository; the in-memory implementation stands in for a database.
"""
