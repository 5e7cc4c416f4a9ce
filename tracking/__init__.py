"""Device location tracking package."""

from tracking.services.location_tracker import LocationTracker, TrackingSubscription

__all__ = ["LocationTracker", "TrackingSubscription"]
