"""
Conduit Articles Backend — Middleware Package
==============================================

Middleware chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route guards → Handler

    1. Request ID: assign the correlation ID used by every log line
    2. Logging: one access-log line per request, with status and duration
    3. GZip / CORS: provided by Starlette/FastAPI
"""
