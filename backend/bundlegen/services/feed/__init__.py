"""Events feed: assembly from Bundle products (public/admin) and remote fetch for feed-driven generation."""
from bundlegen.services.feed.assembler import admin_feed, build_month, fill_missing_variant_ids, public_feed
from bundlegen.services.feed.remote import fetch_feed_month
from bundlegen.services.feed.types import FeedDay, FeedMonth, FeedSlot

__all__ = [
    "FeedDay",
    "FeedMonth",
    "FeedSlot",
    "admin_feed",
    "build_month",
    "fetch_feed_month",
    "fill_missing_variant_ids",
    "public_feed",
]
