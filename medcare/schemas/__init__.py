"""
MedCare Backend: Pydantic Request/Response Schemas
====================================================

What:  The API contract, one module per resource.
Why:   Every payload is validated at the boundary, so malformed input is
       rejected by shape before it reaches a service.
"""
