from rest_framework import permissions


class HasRole(permissions.BasePermission):
    """Allows access only to users whose role is listed in ``view.allowed_roles``.

    Superusers pass as administrators. Department scoping is left to the
    services, which know which department owns the resource.
    """

    allowed_roles = ()

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if not user or not user.is_authenticated:
            return False

        allowed = getattr(view, 'allowed_roles', None) or self.allowed_roles
        if not allowed:
            return True

        from .capabilities import effective_role

        return effective_role(user) in allowed
