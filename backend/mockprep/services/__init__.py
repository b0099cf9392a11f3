"""
External collaborators used by the session engine.
"""
