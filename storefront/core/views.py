from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import AuditLog
from .permissions import IsAdminRole
from .serializers import UserSerializer, AuditLogSerializer

User = get_user_model()


class StorefrontTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class StorefrontTokenObtainPairView(TokenObtainPairView):
    serializer_class = StorefrontTokenObtainPairSerializer


class StorefrontTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class StorefrontTokenRefreshView(TokenRefreshView):
    serializer_class = StorefrontTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the current user"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """List audit logs, optionally filtered by action, model or reference"""
    queryset = AuditLog.objects.select_related('user').all()

    action = request.query_params.get('action')
    if action:
        queryset = queryset.filter(action=action)
    model_name = request.query_params.get('model_name')
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    reference = request.query_params.get('object_reference')
    if reference:
        queryset = queryset.filter(object_reference__icontains=reference)

    serializer = AuditLogSerializer(queryset[:500], many=True)
    return Response(serializer.data)
