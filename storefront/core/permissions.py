from rest_framework.permissions import BasePermission


class IsSeller(BasePermission):
    """Allows access only to seller accounts (admins included)"""
    message = 'Seller account required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.user_type in ('seller', 'admin'))


class IsBuyer(BasePermission):
    """Allows access only to buyer accounts"""
    message = 'Buyer account required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.user_type == 'buyer')
