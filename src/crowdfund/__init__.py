"""
Crowdfund campaign service package.

Durable campaign records, a persisted id allocator and the campaign
operations, exposed over a FastAPI application in ``crowdfund.main``.
"""
