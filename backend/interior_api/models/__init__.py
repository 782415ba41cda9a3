# Importing the package registers every table on Base.metadata (Alembic, tests)
from interior_api.models.admin import AdminUser, RefreshToken
from interior_api.models.analytics import ApiCall
from interior_api.models.inquiry import Inquiry
from interior_api.models.media import MediaMetadata

__all__ = ["AdminUser", "ApiCall", "Inquiry", "MediaMetadata", "RefreshToken"]
