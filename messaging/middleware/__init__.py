from .auth import HandshakeAuthMiddleware
from .throttling import ChannelThrottlingMiddleware


__all__ = ["ChannelThrottlingMiddleware", "HandshakeAuthMiddleware"]
