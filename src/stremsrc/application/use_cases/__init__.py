from .resolve_streams import ResolveStreamsUseCase, cache_key

__all__ = ["ResolveStreamsUseCase", "cache_key"]
