"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in app.schemas.schemas:
- Request schemas (what the API accepts)
- Response schemas (what the API returns)
- Enums shared by both
"""
