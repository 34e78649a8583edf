"""
Orders service: order CRUD on MySQL through SQLAlchemy asyncio.
"""
