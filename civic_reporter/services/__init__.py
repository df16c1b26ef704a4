"""
Services layer - Business logic goes here.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Location lookups never raise; they return an error variant
"""
