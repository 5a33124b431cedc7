"""
User management REST API views.

Implements endpoints for:
- Listing and creating users (admin only)
- Profile updates, project assignment and status changes (admin only)
- Permission override strings (admin only)
- The caller's own profile
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import EntityPermission, IsAdminRole
from apps.iam.permissions import USER_RESOURCE
from apps.iam.services import UserService
from apps.iam.serializers import (
    UserSerializer, UserCreateSerializer, UserUpdateSerializer,
    AssignProjectSerializer, UserStatusSerializer, PermissionOverridesSerializer
)


class AdminUserView(APIView):
    """Base for the admin-only user endpoints."""
    permission_classes = [IsAdminRole]
    resource_key = USER_RESOURCE


@extend_schema_view(
    get=extend_schema(
        tags=['Users'],
        summary='List users',
        parameters=[
            OpenApiParameter(
                name='role',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description='Filter by role: admin, staff or accountant',
                required=False
            )
        ],
        responses={200: UserSerializer(many=True), 403: OpenApiTypes.OBJECT}
    ),
    post=extend_schema(
        tags=['Users'],
        summary='Create user',
        description='''
Create a user and email them their login details.

A failed email is logged and does not fail the request.

**Admin only.**
        ''',
        request=UserCreateSerializer,
        responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Create Request',
                value={
                    'fullName': 'Priya Sharma',
                    'email': 'priya@example.com',
                    'role': 'staff',
                    'projectId': '123e4567-e89b-12d3-a456-426614174000',
                    'password': 'Welcome123!'
                },
                request_only=True
            ),
            OpenApiExample(
                'Email Taken',
                value={'error': 'Email already in use'},
                response_only=True,
                status_codes=['409']
            )
        ]
    )
)
class UserListView(AdminUserView):
    """
    GET /api/v1/users
    POST /api/v1/users
    """

    def get(self, request):
        users = UserService.list_users(role=request.query_params.get('role'))
        return Response({'data': UserSerializer(users, many=True).data})

    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.create_user(serializer.validated_data)

        return Response(
            {
                'message': 'User created successfully',
                'user': UserSerializer(user).data
            },
            status=status.HTTP_201_CREATED
        )


@extend_schema_view(
    get=extend_schema(tags=['Users'], summary='Get user', responses={200: UserSerializer}),
    put=extend_schema(
        tags=['Users'],
        summary='Update user',
        request=UserUpdateSerializer,
        responses={200: UserSerializer}
    ),
    delete=extend_schema(
        tags=['Users'],
        summary='Deactivate user',
        description='Sets the status to inactive. The row is kept.',
        responses={200: OpenApiTypes.OBJECT}
    )
)
class UserDetailView(AdminUserView):
    """
    GET /api/v1/users/<id>
    PUT /api/v1/users/<id>
    DELETE /api/v1/users/<id>
    """

    def get(self, request, user_id):
        user = UserService.get_user(user_id)
        return Response(UserSerializer(user).data)

    def put(self, request, user_id):
        user = UserService.get_user(user_id)
        serializer = UserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.update_user(user, serializer.validated_data)
        return Response(UserSerializer(user).data)

    def delete(self, request, user_id):
        user = UserService.get_user(user_id)
        UserService.deactivate(user)
        return Response({'success': True, 'message': 'User deactivated successfully'})


@extend_schema(
    tags=['Users'],
    summary='Assign project',
    request=AssignProjectSerializer,
    responses={200: UserSerializer}
)
class UserAssignProjectView(AdminUserView):
    """PATCH /api/v1/users/<id>/assign-project"""

    def patch(self, request, user_id):
        user = UserService.get_user(user_id)
        serializer = AssignProjectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.assign_project(user, serializer.validated_data['project'])
        return Response(UserSerializer(user).data)


@extend_schema(
    tags=['Users'],
    summary='Change user status',
    request=UserStatusSerializer,
    responses={200: UserSerializer}
)
class UserStatusView(AdminUserView):
    """PATCH /api/v1/users/<id>/status"""

    def patch(self, request, user_id):
        user = UserService.get_user(user_id)
        serializer = UserStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.set_status(user, serializer.validated_data['status'])
        return Response(UserSerializer(user).data)


@extend_schema(
    tags=['Users'],
    summary='Replace permission overrides',
    description='''
Replace the override strings copied into the user's access tokens.

Each entry has the form `<resource>:<entity>:<hex>`, e.g. `invoice:entity:4`.
Changes apply from the next token exchange.
    ''',
    request=PermissionOverridesSerializer,
    responses={200: UserSerializer, 400: OpenApiTypes.OBJECT}
)
class UserPermissionsView(AdminUserView):
    """PUT /api/v1/users/<id>/permissions"""

    def put(self, request, user_id):
        user = UserService.get_user(user_id)
        serializer = PermissionOverridesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.set_permission_overrides(user, serializer.validated_data['permissions'])
        return Response(UserSerializer(user).data)


@extend_schema(
    tags=['Users'],
    summary='Current user profile',
    responses={200: UserSerializer, 401: OpenApiTypes.OBJECT}
)
class CurrentUserView(APIView):
    """
    GET /api/v1/users/me

    Every role may read its own profile.
    """
    permission_classes = [EntityPermission]
    resource_key = USER_RESOURCE

    def get(self, request):
        return Response(UserSerializer(request.user).data)
