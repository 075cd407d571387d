"""
QA Insights
===========

Customer-support QA analytics service.

Aggregates per-interaction quality scores, sentiment labels and
response-time logs into per-employee and per-week rollups, and flags
response-time SLA breaches.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and aggregation services
- Infrastructure: Database, YAML config, scheduler
"""

__version__ = "1.0.0"
