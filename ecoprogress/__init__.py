"""
ecoprogress - progress computation and unlocking engine for sustainability tracking

Turns a user's dated environmental activities into:
- Rolling consecutive-day streaks
- Windowed metric aggregates (counts, sums, differences)
- Goal completion and milestone transitions
- Achievement progress and unlocks
"""

__version__ = "0.1.0"
