from .tracing import get_tracer, setup_tracing


__all__ = ["get_tracer", "setup_tracing"]
