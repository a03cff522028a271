"""checkin: weekly check-in tracking with plateau prevention metrics."""

__version__ = "0.1.0"
