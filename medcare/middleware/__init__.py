"""
MedCare Backend: Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Timeout] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any processing
    2. Request ID: correlation ID for every later log line
    3. Logging: method, path, status, duration with the request ID
    4. Timeout: bounds the handler's wall-clock time
"""
