"""
MockPrep assessment engine: timed interview and quiz sessions.
"""
