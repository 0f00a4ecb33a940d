from drf_spectacular.utils import extend_schema
from rest_framework_simplejwt.views import TokenObtainPairView

from authentication.api.serializers import CustomTokenObtainPairSerializer


@extend_schema(
    operation_id="auth_token_obtain",
    summary="Obtain JWT pair",
    description="""
**What it receives:**
- `email` and `password` of an active account

**What it returns:**
- `access` and `refresh` tokens; the access token carries `role` and `is_admin` claims
- Use the access token as `Authorization: Bearer <token>` and as `?token=` on the messaging socket
    """,
    tags=["Authentication"],
)
class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer
