"""
homerun: a turn-based "search, fight, evacuate" engine.

Layout generation and population live in homerun.world, the movement loop,
pursuit AI and battle machine in homerun.engine, and the bundled content
tables in homerun.content. Rendering and persistence are left to callers.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
