"""Content and engagement metrics for a competitor's recent posts.

All functions are pure: they take normalized post dicts (see
``app.scraping.mappers.base.POST_FIELDS``) and return JSON-serializable dicts.
"""

import re
from collections import Counter
from datetime import datetime, timedelta, timezone

HASHTAG_RE = re.compile(r"#\w+")

TREND_MIN_POSTS = 5
TREND_THRESHOLD = 0.10


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def filter_recent_posts(
    posts: list[dict],
    time_period_days: int,
    max_posts: int | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """Keep posts created within the lookback window, newest first.

    Posts without a parseable ``created_at`` cannot be placed in the window
    and are dropped.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=time_period_days)

    dated = []
    for post in posts:
        created = parse_timestamp(post.get("created_at"))
        if created is not None and created >= cutoff:
            dated.append((created, post))
    dated.sort(key=lambda item: item[0], reverse=True)

    recent = [post for _, post in dated]
    if max_posts is not None:
        recent = recent[:max_posts]
    return recent


def classify_content_type(post: dict, platform: str) -> str:
    if platform == "twitter":
        if post.get("has_media"):
            return "media"
        if post.get("is_reshare"):
            return "retweet"
        return "text"
    if platform == "instagram":
        return (post.get("media_type") or "image").lower()
    if platform == "youtube":
        return "video"
    # linkedin, facebook
    if post.get("has_media"):
        return "media"
    if post.get("is_reshare"):
        return "reshare"
    return "text"


def extract_hashtags(text: str | None) -> list[str]:
    if not text:
        return []
    return [tag.lower() for tag in HASHTAG_RE.findall(text)]


def post_engagement(post: dict) -> int:
    return (post.get("likes") or 0) + (post.get("comments") or 0) + (post.get("shares") or 0)


def posting_schedule(posts: list[dict]) -> dict:
    """Most active UTC hours (top 5) and weekdays (top 3)."""
    hours: Counter = Counter()
    days: Counter = Counter()
    for post in posts:
        created = parse_timestamp(post.get("created_at"))
        if created is None:
            continue
        created = created.astimezone(timezone.utc)
        hours[created.hour] += 1
        days[created.strftime("%A")] += 1

    return {
        "best_hours": [{"hour": h, "count": c} for h, c in hours.most_common(5)],
        "best_days": [{"day": d, "count": c} for d, c in days.most_common(3)],
    }


def analyze_content(posts: list[dict], platform: str, time_period_days: int) -> dict:
    """Summarize a (time-filtered) post sample."""
    total = len(posts)
    content_types = Counter(classify_content_type(p, platform) for p in posts)
    hashtags = Counter(tag for p in posts for tag in extract_hashtags(p.get("text")))

    per_week = (total / time_period_days * 7) if time_period_days > 0 else 0.0

    return {
        "posts": posts,
        "total_posts": total,
        "average_posts_per_week": round(per_week, 2),
        "content_types": dict(content_types),
        "top_hashtags": [{"tag": t, "count": c} for t, c in hashtags.most_common(20)],
        "posting_schedule": posting_schedule(posts),
    }


def engagement_trend(posts: list[dict]) -> str:
    """
    Compare the newer half of a newest-first sample to the older half.

    Returns increasing / decreasing / stable, or insufficient_data below
    five posts.
    """
    if len(posts) < TREND_MIN_POSTS:
        return "insufficient_data"

    mid = len(posts) // 2
    recent = [post_engagement(p) for p in posts[:mid]]
    older = [post_engagement(p) for p in posts[mid:]]
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)

    if older_avg == 0:
        return "increasing" if recent_avg > 0 else "stable"

    change = (recent_avg - older_avg) / older_avg
    if change > TREND_THRESHOLD:
        return "increasing"
    if change < -TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def calculate_engagement(posts: list[dict], followers: int) -> dict:
    if not posts:
        return {
            "average_likes": 0,
            "average_comments": 0,
            "average_shares": 0,
            "average_engagement": 0,
            "total_engagement": 0,
            "engagement_rate": 0.0,
            "engagement_trend": "insufficient_data",
        }

    n = len(posts)
    total_likes = sum(p.get("likes") or 0 for p in posts)
    total_comments = sum(p.get("comments") or 0 for p in posts)
    total_shares = sum(p.get("shares") or 0 for p in posts)
    total_engagement = total_likes + total_comments + total_shares
    avg_engagement = total_engagement / n

    rate = round(avg_engagement / followers * 100, 1) if followers else 0.0

    return {
        "average_likes": round(total_likes / n),
        "average_comments": round(total_comments / n),
        "average_shares": round(total_shares / n),
        "average_engagement": round(avg_engagement),
        "total_engagement": total_engagement,
        "engagement_rate": rate,
        "engagement_trend": engagement_trend(posts),
    }
