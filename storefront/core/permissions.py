from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    """Allows access only to storefront admins"""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsAdminOrSeller(BasePermission):
    message = 'Admin or seller access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_admin_role or user.role == 'seller'))


class IsCustomer(BasePermission):
    """Cart and order-review endpoints are customer only"""
    message = 'Customer access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == 'customer')


class IsAdminOrReadOnly(BasePermission):
    """Public reads, admin writes"""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return IsAdminRole().has_permission(request, view)


class IsAdminSellerOrReadOnly(BasePermission):
    """Public reads, admin or seller writes"""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return IsAdminOrSeller().has_permission(request, view)
