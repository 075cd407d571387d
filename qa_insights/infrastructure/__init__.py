"""
Infrastructure Layer
====================

Technical capabilities shared by bounded contexts (database engine and sessions).
"""
