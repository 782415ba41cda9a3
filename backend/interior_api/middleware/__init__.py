"""
Eleven Interior API - Middleware Package
=========================================

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → [Admin Auth] → [GZip] → Route

    1. CORS outermost: every response, including 401/429 short-circuits,
       gets CORS headers, and preflights are answered before any counting.
    2. Request ID before everything that can reject, so rejections are traceable.
    3. Rate limit before auth: credential guessing against /api/admin/* is throttled.
    4. Admin auth only inspects /api/admin/* and /api/v1/admin/*.
"""
