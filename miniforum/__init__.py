"""MiniForum: threads, replies and live subscriptions."""

__version__ = "1.0.0"
