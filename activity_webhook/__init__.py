"""
Activity Webhook - Strava activity webhook receiver with a processed-activity ledger
"""
__version__ = "1.0.0"
