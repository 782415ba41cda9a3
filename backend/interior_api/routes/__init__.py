"""
Eleven Interior API - Routes Package
=====================================

What:  HTTP route handlers for the public site and the admin dashboard.
How:   Each module exposes `router` (public) and, where relevant,
       `admin_router` (mounted under /admin, guarded by AdminAuthMiddleware).
       main.py mounts both under /api and /api/v1.

Route Inventory:
    - videos.py:     GET /api/videos/{section}, /api/admin/videos/*
    - images.py:     GET /api/images/{section}, /api/admin/images/*
    - inquiries.py:  POST /api/inquiries, /api/admin/inquiries/*
    - auth.py:       /api/auth/*, /api/admin/{profile,api-key,...}
    - health.py:     /health, /api/health, /health/{detailed,database,cloudinary}
    - uploads.py:    multipart reading helper

Routes stay THIN: extract HTTP input, call a service, shape the response.
"""
