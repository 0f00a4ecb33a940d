import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError


logger = logging.getLogger(__name__)


class HandshakeAuthMiddleware:
    """
    Authenticate the messaging socket from ``?token=<access jwt>``.

    Runs inside AuthMiddlewareStack: a session user wins, otherwise the
    token is validated with SimpleJWT. An invalid token leaves the scope
    anonymous and the consumer closes the socket with 4001.
    """

    def __init__(self, inner):
        self.inner = inner

    async def __call__(self, scope, receive, send):
        user = scope.get("user")
        if user is not None and not isinstance(user, AnonymousUser):
            return await self.inner(scope, receive, send)

        token = self.token_from_query(scope)
        if token:
            user = await self.get_user_from_token(token)
            if user is not None:
                scope["user"] = user
                logger.debug(f"Authenticated user {user.id} via WebSocket JWT")
            else:
                logger.debug("Invalid JWT token provided in WebSocket handshake")

        return await self.inner(scope, receive, send)

    @staticmethod
    def token_from_query(scope):
        params = parse_qs(scope.get("query_string", b"").decode())
        tokens = params.get("token")
        return tokens[0] if tokens else None

    @database_sync_to_async
    def get_user_from_token(self, token):
        jwt_auth = JWTAuthentication()
        try:
            validated_token = jwt_auth.get_validated_token(token)
            user = jwt_auth.get_user(validated_token)
        except (InvalidToken, TokenError, AuthenticationFailed):
            return None
        return user if user.is_active else None
