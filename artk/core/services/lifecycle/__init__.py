"""
Install lifecycle: the project lock, config backups, and rollback.
"""
