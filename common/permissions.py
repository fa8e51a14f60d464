import logging

from rest_framework.permissions import BasePermission

logger = logging.getLogger("security.authorization")


def scoped_queryset_for_user(queryset, user):
    """Restrict ``queryset`` to rows owned by ``user``; anonymous users see nothing."""
    if not user or not user.is_authenticated:
        return queryset.none()
    return queryset.filter(owner=user)


class OwnerScopedQuerysetMixin:
    def get_queryset(self):
        return scoped_queryset_for_user(super().get_queryset(), self.request.user)


class IsRecordOwner(BasePermission):
    """Object-level guard for records carrying an ``owner`` foreign key."""

    message = "You do not have permission to access this record."

    def has_object_permission(self, request, view, obj):
        allowed = getattr(obj, "owner_id", None) == getattr(request.user, "id", None)
        if not allowed:
            logger.warning(
                "permission_denied user=%s method=%s path=%s view=%s",
                getattr(request.user, "username", "anonymous"),
                request.method,
                request.path,
                view.__class__.__name__,
            )
        return allowed
