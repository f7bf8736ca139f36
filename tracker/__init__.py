"""Field tracking application for medical representatives.

This package contains models, serializers, services, views and route
registrations implementing the API contract expected by the front-end.
"""
