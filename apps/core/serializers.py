"""
Serializers for authentication and staff profiles.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.core.permissions import get_user_role

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """User with the resolved newsroom role."""

    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'role',
        ]
        read_only_fields = fields

    def get_role(self, obj):
        role = get_user_role(obj)
        return role.value if role else None


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token serializer that adds the role claim and user info."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = get_user_role(user).value
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data
