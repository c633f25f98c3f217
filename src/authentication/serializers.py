"""Serializers for authentication flows (register, login, profile) and accounts."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.roles import ASSIGNABLE_ROLES, Role
from .managers import UserManager

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    """Validate and create a self-registered Consumer account."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(required=True, allow_blank=False, max_length=150)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    def create(self, validated_data):
        """Create a Consumer; other roles are granted by an Administrator."""
        validated_data.pop("repeat_password")
        manager = cast(UserManager, User.objects)
        return manager.create_user(role=Role.CONSUMER, **validated_data)


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, password):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

    class Meta:
        """Expose identity fields and role."""
        model = User
        fields = [
            "id",
            "email",
            "name",
            "employee_id",
            "role",
            "is_active",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates: display name and password."""

    password = serializers.CharField(write_only=True, required=False, min_length=8)

    class Meta:
        """Allow partial updates of the name and password."""
        model = User
        fields = ["name", "password"]
        extra_kwargs = {"name": {"required": False, "allow_blank": False}}

    def validate(self, attrs):
        """Reject attempts to change email or role through the profile endpoint."""
        initial = getattr(self, "initial_data", {})
        if "email" in initial:
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        if "role" in initial:
            raise serializers.ValidationError("Role cannot be updated via this endpoint")
        return super().validate(attrs)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        if password:
            instance.set_password(password)
            instance.token_version += 1
        return super().update(instance, validated_data)


class AccountSerializer(serializers.Serializer):
    """Input for Administrator account management.

    Role is limited to the assignable choices, so a request naming the
    Administrator role is rejected before it reaches the service layer.
    An omitted role leaves it to the service: Consumer on create, unchanged
    on update.
    """

    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    employee_id = serializers.CharField(max_length=50, required=False, allow_blank=True)
    role = serializers.CharField(required=False)
    is_active = serializers.BooleanField(required=False)
    password = serializers.CharField(write_only=True, min_length=8, required=False)

    @staticmethod
    def validate_role(value):
        if value == Role.ADMINISTRATOR:
            raise serializers.ValidationError(
                "The Administrator role cannot be assigned through account management."
            )
        if value not in ASSIGNABLE_ROLES:
            raise serializers.ValidationError(f"Unknown role: {value!r}.")
        return Role(value)

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": ["This field is required."]})
        return attrs
