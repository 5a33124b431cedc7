"""
Serializers for authentication and user management.

Request and response bodies use camelCase keys; `source=` maps them onto
model attributes.
"""
from rest_framework import serializers

from apps.iam.models import User
from apps.iam.permissions import is_valid_override_string
from apps.projects.models import Project


class LoginSerializer(serializers.Serializer):
    """Serializer for email login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserSerializer(serializers.ModelSerializer):
    """Read representation of a user."""

    fullName = serializers.CharField(source='full_name', read_only=True)
    projectId = serializers.UUIDField(source='project_id', read_only=True, allow_null=True)
    projectName = serializers.SerializerMethodField()
    lastLoginAt = serializers.DateTimeField(source='last_login_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    userNotes = serializers.CharField(source='user_notes', read_only=True)
    userPhotoUrl = serializers.CharField(source='user_photo_url', read_only=True)
    dateOfBirth = serializers.DateField(source='date_of_birth', read_only=True)
    permissions = serializers.ListField(source='permission_overrides', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'fullName', 'role', 'status', 'projectId',
            'projectName', 'lastLoginAt', 'createdAt', 'updatedAt',
            'userNotes', 'userPhotoUrl', 'dateOfBirth', 'permissions',
        ]
        read_only_fields = fields

    def get_projectName(self, obj):
        return obj.project.name if obj.project_id else None


class UserCreateSerializer(serializers.Serializer):
    """Admin-created user. The password is mailed to the user."""

    fullName = serializers.CharField(
        source='full_name',
        min_length=2,
        max_length=120,
        error_messages={'min_length': 'Full Name is required'}
    )
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
    projectId = serializers.PrimaryKeyRelatedField(
        source='project',
        queryset=Project.objects.all(),
        required=False,
        allow_null=True
    )
    password = serializers.CharField(
        min_length=8,
        write_only=True,
        error_messages={'min_length': 'Password must be at least 8 characters'}
    )
    userNotes = serializers.CharField(source='user_notes', required=False, allow_blank=True)
    userPhotoUrl = serializers.CharField(
        source='user_photo_url',
        required=False,
        allow_null=True,
        allow_blank=True,
        max_length=1024
    )
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)


class UserUpdateSerializer(serializers.Serializer):
    """General profile update (PUT); every field optional."""

    fullName = serializers.CharField(source='full_name', min_length=2, max_length=120, required=False)
    projectId = serializers.PrimaryKeyRelatedField(
        source='project',
        queryset=Project.objects.all(),
        required=False,
        allow_null=True
    )
    userNotes = serializers.CharField(source='user_notes', required=False, allow_blank=True, allow_null=True)
    userPhotoUrl = serializers.CharField(
        source='user_photo_url',
        required=False,
        allow_null=True,
        allow_blank=True,
        max_length=1024
    )
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)


class AssignProjectSerializer(serializers.Serializer):
    projectId = serializers.PrimaryKeyRelatedField(source='project', queryset=Project.objects.all())


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=User.STATUS_CHOICES)


class PermissionOverridesSerializer(serializers.Serializer):
    """Replace a user's override strings."""

    permissions = serializers.ListField(child=serializers.CharField(), allow_empty=True)

    def validate_permissions(self, value):
        invalid = [item for item in value if not is_valid_override_string(item)]
        if invalid:
            raise serializers.ValidationError(
                f"Expected '<resource>:<entity>:<hex>', got: {', '.join(invalid)}"
            )
        return value
