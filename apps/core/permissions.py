"""
DRF permission classes backed by the bitmask permission evaluator.

This module provides:
- EntityPermission: evaluates the view's resource_key for the request's
  role, HTTP method and override strings
- IsAdminRole: restricts a view to admins
"""
import logging
from rest_framework.permissions import BasePermission

from apps.core.authentication import RequestContext
from apps.core.logging import SecurityLogger
from apps.iam.permissions import PermissionResult, evaluate_permission, method_to_action

logger = logging.getLogger(__name__)


def get_request_context(request):
    """Return the RequestContext of an authenticated DRF request, or None."""
    context = getattr(request, 'auth', None)
    return context if isinstance(context, RequestContext) else None


class EntityPermission(BasePermission):
    """
    Enforce the permission directory on API endpoints.

    The view declares which resource it serves; the action comes from the
    HTTP method. The evaluation result is stored on the request so the view
    can apply the ownership scope when result.conditional is set.

    Usage in views:
        class InvoiceListView(APIView):
            permission_classes = [EntityPermission]
            resource_key = 'invoice:entity'
            permission_denied_messages = {'create': 'Only Admins can ...'}
    """

    message = 'Forbidden'

    def has_permission(self, request, view):
        context = get_request_context(request)
        if context is None:
            return False

        resource_key = getattr(view, 'resource_key', None)
        action = method_to_action(request.method)
        if not resource_key or not action:
            logger.error(
                "View without resource_key or unsupported method",
                extra={'view': view.__class__.__name__, 'method': request.method}
            )
            return False

        result = evaluate_permission(resource_key, context.role, action, context.permissions)
        request.permission_result = result

        if not result.allowed:
            messages = getattr(view, 'permission_denied_messages', None) or {}
            self.message = messages.get(action, self.message)

            SecurityLogger.log_permission_denied(
                user_id=context.user_id,
                role=context.role,
                resource=resource_key,
                action=action,
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
            )
            return False

        logger.debug(
            "Permission granted",
            extra={
                'resource': resource_key,
                'action': action,
                'conditional': result.conditional,
                'view': view.__class__.__name__,
            }
        )
        return True


class IsAdminRole(BasePermission):
    """Allow only authenticated admins."""

    message = 'Admin access required'

    def has_permission(self, request, view):
        context = get_request_context(request)
        if context is None:
            return False

        if not context.is_admin:
            SecurityLogger.log_permission_denied(
                user_id=context.user_id,
                role=context.role,
                resource=getattr(view, 'resource_key', view.__class__.__name__),
                action=method_to_action(request.method),
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
            )
            return False
        return True


def is_conditional(request) -> bool:
    """Whether the last evaluation on this request requires ownership scoping."""
    result = getattr(request, 'permission_result', None)
    return isinstance(result, PermissionResult) and result.conditional
