"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from qa_insights.core.exceptions import (
    ApplicationException,
    RepositoryException,
    DataAccessException,
    ResourceNotFoundException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "DataAccessException",
    "ResourceNotFoundException",
    "ConfigurationException",
]
