# Middleware package init
"""
CaddieAI Backend — Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Logging] → [CORS/GZip] → Route

    The request ID is assigned first so that rejected requests (429) carry it
    too, and the access log line and every service log line of the request
    share it. Rate limiting then rejects abusive clients before any other
    work. Responses travel back through the same chain.
"""
