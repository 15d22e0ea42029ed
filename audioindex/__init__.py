"""Per-directory MessagePack index of audio recordings, with a cache, builder, task queue and query API."""

__version__ = "0.1.0"
__all__ = ["utils", "parser", "cache", "builder", "taskqueue", "api"]