import math

from rest_framework import permissions
from rest_framework.authentication import TokenAuthentication
from rest_framework.exceptions import PermissionDenied


class BearerTokenAuthentication(TokenAuthentication):
    """Token auth read from `Authorization: Bearer <key>`; banned accounts are refused."""
    keyword = 'Bearer'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if user.is_banned:
            raise PermissionDenied(f"Account is banned. {user.ban_reason or ''}".strip())
        return user, token


class IsVerified(permissions.BasePermission):
    message = 'Account verification required to post jobs'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_verified


def paginate(items, request, default_limit=20, max_limit=50):
    """Slice a queryset or list by the `page`/`limit` query params.

    Returns the page of items and the pagination block the API reports
    alongside every list.
    """
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        limit = default_limit
    limit = min(max(limit, 1), max_limit)

    total = items.count() if hasattr(items, 'count') and not isinstance(items, list) else len(items)
    offset = (page - 1) * limit
    return items[offset:offset + limit], {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if total else 0,
    }
