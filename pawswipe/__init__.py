"""
Paws & Preferences - Swipe engine for a prefetched batch of images.

The engine provides:
- Concurrent batch prefetching with retries and placeholder fallback
- A gesture classifier turning pointer motion into accept/reject
- A single explicit session with a settle-delay-aware state machine
- A summary/share layer and a FastAPI control surface
"""

__version__ = "0.1.0"
