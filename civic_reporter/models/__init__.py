"""
Pydantic models for request/response validation.

DESIGN PRINCIPLE:
- Models should reflect data structure, not business logic
- Keep models simple and focused on validation
"""
