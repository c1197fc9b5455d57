"""Data-quality score for one collected competitor."""

FACTOR_WEIGHTS = {
    "profile_data_available": 30,
    "content_data_available": 40,
    "sufficient_content_sample": 10,
    "engagement_data_available": 20,
}

SUFFICIENT_SAMPLE = 10


def quality_level(score: int) -> str:
    if score >= 80:
        return "high"
    if score >= 50:
        return "medium"
    return "low"


def assess_data_quality(profile: dict | None, content: dict | None, engagement: dict | None) -> dict:
    """
    Score how much usable data was collected, 0-100.

    Returns dict with score, level (low/medium/high) and the list of factors
    that contributed.
    """
    factors: list[str] = []

    if profile and not profile.get("error"):
        factors.append("profile_data_available")

    total_posts = (content or {}).get("total_posts") or 0
    if total_posts > 0:
        factors.append("content_data_available")
    if total_posts >= SUFFICIENT_SAMPLE:
        factors.append("sufficient_content_sample")

    if ((engagement or {}).get("total_engagement") or 0) > 0:
        factors.append("engagement_data_available")

    score = sum(FACTOR_WEIGHTS[f] for f in factors)
    return {
        "score": score,
        "level": quality_level(score),
        "factors": factors,
    }
