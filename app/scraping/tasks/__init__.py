# Celery task registry (autodiscovered by celery_app)
from app.scraping.maintenance import expire_competitor_analyses, cleanup_competitor_cache

__all__ = ["expire_competitor_analyses", "cleanup_competitor_cache"]
