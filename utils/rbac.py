from django.contrib.auth import get_user_model

ROLE_ADMIN = "admin"


def _fetch_role_fields(user):
    """Fresh role/superuser flags from the database, or None for anonymous users.

    Tokens carry a ``role`` claim, but a demoted admin must lose access before
    their token expires, so checks read the stored row.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    User = get_user_model()
    return (
        User.objects.filter(pk=getattr(user, "pk", None))
        .values("role", "is_superuser", "account_status")
        .first()
    )


def is_admin(user) -> bool:
    """Admin check shared by permission classes and domain services."""
    row = _fetch_role_fields(user)
    if row is None:
        return False
    return bool(row["is_superuser"] or row["role"] == ROLE_ADMIN)

