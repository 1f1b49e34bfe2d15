"""
handlers/ - Presentation Layer
================================
HTTP handlers. Each handler receives a request, delegates to the
appropriate Service, and maps the outcome to an HTTP response.
No business logic lives here.
"""
