"""catchhook - receive, store and inspect arbitrary webhooks."""

__version__ = "1.0.0"
