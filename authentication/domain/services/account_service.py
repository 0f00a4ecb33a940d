"""
AccountService - registration, own-profile edits, passwords and the public
seller pages (profile, listings, sales).
"""

import uuid
from typing import Dict, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok

User = get_user_model()

PROFILE_FIELDS = ("first_name", "last_name", "phone")


class AccountService(BaseService):
    def _find_user(self, user_id) -> Optional[User]:
        try:
            return User.objects.filter(id=user_id).first()
        except ValidationError:
            return None

    def _can_manage(self, actor, user) -> bool:
        return actor.is_authenticated and (actor.id == user.id or actor.is_admin())

    def _unique_username(self, email: str) -> str:
        base = email.split("@", 1)[0][:140] or "user"
        if not User.objects.filter(username=base).exists():
            return base
        return f"{base}-{uuid.uuid4().hex[:8]}"

    @BaseService.log_performance
    def register(self, data: Dict) -> ServiceResult[User]:
        """
        Create an account. The email must be unused and, when the platform
        restricts sign-up, belong to one of ``ALLOWED_EMAIL_DOMAINS``.

        Errors:
            VALIDATION_ERROR, EMAIL_TAKEN
        """
        email = (data.get("email") or "").strip().lower()
        password = data.get("password") or ""
        first_name = (data.get("first_name") or "").strip()
        last_name = (data.get("last_name") or "").strip()
        if not (email and password and first_name and last_name):
            return service_err(ErrorCodes.VALIDATION_ERROR, "First name, last name, email and password are required")

        allowed = getattr(settings, "MARKETPLACE", {}).get("ALLOWED_EMAIL_DOMAINS") or []
        domain = email.rsplit("@", 1)[-1]
        if allowed and domain not in allowed:
            return service_err(
                ErrorCodes.VALIDATION_ERROR, f"Please register with a campus email address ({', '.join(allowed)})"
            )

        try:
            validate_password(password, user=User(email=email, first_name=first_name, last_name=last_name))
        except ValidationError as e:
            return service_err(ErrorCodes.VALIDATION_ERROR, " ".join(e.messages))

        try:
            if User.objects.filter(email__iexact=email).exists():
                return service_err(ErrorCodes.EMAIL_TAKEN, "An account with this email already exists")
            try:
                with transaction.atomic():
                    user = User.objects.create_user(
                        username=self._unique_username(email),
                        email=email,
                        password=password,
                        first_name=first_name,
                        last_name=last_name,
                        phone=(data.get("phone") or "").strip(),
                    )
            except IntegrityError:
                return service_err(ErrorCodes.EMAIL_TAKEN, "An account with this email already exists")

            self.logger.info(f"Registered user {user.id}")
            return service_ok(user)
        except Exception as e:
            return self.internal_error("registering user", e)

    @BaseService.log_performance
    def update_profile(self, actor, user_id, data: Dict) -> ServiceResult[User]:
        """Edit name and phone; the account owner or an admin only."""
        try:
            user = self._find_user(user_id)
            if user is None:
                return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
            if not self._can_manage(actor, user):
                return service_err(ErrorCodes.PERMISSION_DENIED, "You can only edit your own profile")

            changed = []
            for field in PROFILE_FIELDS:
                if field in data and data[field] is not None:
                    value = str(data[field]).strip()
                    if field != "phone" and not value:
                        return service_err(ErrorCodes.VALIDATION_ERROR, f"{field} cannot be empty")
                    setattr(user, field, value)
                    changed.append(field)
            if changed:
                user.save(update_fields=changed)
            return service_ok(user)
        except Exception as e:
            return self.internal_error(f"updating profile of user {user_id}", e)

    @BaseService.log_performance
    def change_password(self, user, current_password: str, new_password: str) -> ServiceResult[None]:
        """
        Errors:
            VALIDATION_ERROR, INVALID_CREDENTIALS
        """
        if not current_password or not new_password:
            return service_err(ErrorCodes.VALIDATION_ERROR, "Current and new password are required")
        if not user.check_password(current_password):
            return service_err(ErrorCodes.INVALID_CREDENTIALS, "Current password is incorrect")
        try:
            validate_password(new_password, user=user)
        except ValidationError as e:
            return service_err(ErrorCodes.VALIDATION_ERROR, " ".join(e.messages))

        try:
            user.set_password(new_password)
            user.save(update_fields=["password"])
            self.logger.info(f"Password changed for user {user.id}")
            return service_ok()
        except Exception as e:
            return self.internal_error(f"changing password of user {user.id}", e)

    def get_profile(self, user_id) -> ServiceResult[User]:
        user = self._find_user(user_id)
        if user is None:
            return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
        return service_ok(user)

    @BaseService.log_performance
    def get_listings(self, viewer, user_id, status: Optional[str] = None, page=None, page_size=None):
        """
        A user's products, active ones by default. Other statuses are only
        listed for the owner and admins.
        """
        from marketplace.catalog.domain.models import Product

        try:
            user = self._find_user(user_id)
            if user is None:
                return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
            status = status or Product.STATUS_ACTIVE
            if status != "all" and status not in dict(Product.STATUS_CHOICES):
                return service_err(ErrorCodes.INVALID_INPUT, "Invalid product status")
            if status != Product.STATUS_ACTIVE and not self._can_manage(viewer, user):
                return service_err(ErrorCodes.PERMISSION_DENIED, "Only active listings are public")

            queryset = Product.objects.select_related("seller").filter(seller=user)
            if status != "all":
                queryset = queryset.filter(status=status)
            return service_ok(paginate(queryset.order_by("-created_at"), page, page_size))
        except Exception as e:
            return self.internal_error(f"listing products of user {user_id}", e)

    @BaseService.log_performance
    def get_sales(self, viewer, user_id, page=None, page_size=None):
        """Order lines sold by the user, newest first. Owner or admin only."""
        from marketplace.ordering.domain.models import OrderItem

        try:
            user = self._find_user(user_id)
            if user is None:
                return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
            if not self._can_manage(viewer, user):
                return service_err(ErrorCodes.PERMISSION_DENIED, "You can only view your own sales")

            queryset = (
                OrderItem.objects.select_related("order", "order__buyer")
                .filter(seller=user)
                .order_by("-order__created_at", "-id")
            )
            return service_ok(paginate(queryset, page, page_size))
        except Exception as e:
            return self.internal_error(f"listing sales of user {user_id}", e)
