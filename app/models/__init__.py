from app.models.user import User
from app.models.analysis import CompetitorAnalysis

__all__ = [
    "User",
    "CompetitorAnalysis",
]
