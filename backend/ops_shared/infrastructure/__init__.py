"""
Infrastructure module: database engine, sessions and transactions (db.py).
"""
