"""
Blog sample application wiring blogstore sessions to the board services.
"""

from .demo import bootstrap_session, fetch_recent_posts, run_demo, seed_sample_data

__all__ = [
    "bootstrap_session",
    "seed_sample_data",
    "fetch_recent_posts",
    "run_demo",
]
