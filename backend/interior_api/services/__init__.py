"""
Eleven Interior API - Services Layer
=====================================

Service Inventory:
    - CloudinaryService: signed uploads/deletes and delivery URLs (per request)
    - MediaService:      section videos and images (validation + metadata)
    - InquiryService:    contact inquiries, triage and status workflow
    - AuthService:       admin accounts, login and refresh-token rotation

Services never touch HTTP objects; routes pass in the session, settings and
the per-request media client.
"""
