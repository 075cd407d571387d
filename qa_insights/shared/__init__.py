"""
Shared Kernel Module
====================

Shared infrastructure and API plumbing used across bounded contexts.

DO NOT add analytics business logic to the shared kernel.
"""
