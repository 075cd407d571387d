"""
QA Analytics Module
===================

Bounded context for customer-support quality analytics.

Responsibilities:
- Filter interactions by the configured employee allow-list
- Aggregate per-employee criterion averages and sentiment tallies
- Parse response-time text and flag SLA violations
- Roll interactions up into Sunday-aligned weeks
- Summarize tickets and derive team-level insights
- Provide the dashboard API
"""
