"""
Database Models
"""
from activity_webhook.db.models.processed_activity import ProcessedActivity

__all__ = [
    "ProcessedActivity",
]
