"""
Project REST API views.

Reads are open to every role with project read access (staff only see their
own project). Writes are admin only.
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import EntityPermission, get_request_context, is_conditional
from apps.iam.permissions import PROJECT_RESOURCE
from apps.projects.serializers import (
    ProjectListSerializer, ProjectDetailSerializer, ProjectWriteSerializer
)
from apps.projects.services import ProjectService


class ProjectView(APIView):
    permission_classes = [EntityPermission]
    resource_key = PROJECT_RESOURCE
    permission_denied_messages = {
        'create': 'Only Admins can create projects',
        'update': 'Only Admins can update projects',
        'delete': 'Only Admins can delete projects',
    }


@extend_schema_view(
    get=extend_schema(
        tags=['Projects'],
        summary='List projects',
        description='Staff only see the project they are assigned to.',
        responses={200: ProjectListSerializer(many=True)}
    ),
    post=extend_schema(
        tags=['Projects'],
        summary='Create project',
        description='**Admin only.** State links are created in the same transaction.',
        request=ProjectWriteSerializer,
        responses={201: ProjectDetailSerializer, 400: OpenApiTypes.OBJECT, 403: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Create Request',
                value={
                    'name': 'Metro Line 3',
                    'modeOfProjectId': '123e4567-e89b-12d3-a456-426614174000',
                    'stateIds': ['123e4567-e89b-12d3-a456-426614174001']
                },
                request_only=True
            )
        ]
    )
)
class ProjectListView(ProjectView):
    """
    GET /api/v1/projects
    POST /api/v1/projects
    """

    def get(self, request):
        projects = ProjectService.list_projects(
            get_request_context(request),
            conditional=is_conditional(request),
        )
        return Response({'data': ProjectListSerializer(projects, many=True).data})

    def post(self, request):
        serializer = ProjectWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = ProjectService.create_project(serializer.validated_data)
        return Response(ProjectDetailSerializer(project).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    get=extend_schema(tags=['Projects'], summary='Get project', responses={200: ProjectDetailSerializer}),
    put=extend_schema(
        tags=['Projects'],
        summary='Update project',
        description='**Admin only.** Partial. A given `stateIds` list replaces the current links.',
        request=ProjectWriteSerializer,
        responses={200: ProjectDetailSerializer}
    ),
    delete=extend_schema(tags=['Projects'], summary='Delete project', responses={200: OpenApiTypes.OBJECT})
)
class ProjectDetailView(ProjectView):
    """
    GET /api/v1/projects/<id>
    PUT /api/v1/projects/<id>
    DELETE /api/v1/projects/<id>
    """

    def get(self, request, project_id):
        project = ProjectService.get_project(
            project_id,
            account=get_request_context(request),
            conditional=is_conditional(request),
        )
        return Response(ProjectDetailSerializer(project).data)

    def put(self, request, project_id):
        project = ProjectService.get_project(project_id)
        serializer = ProjectWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        project = ProjectService.update_project(project, serializer.validated_data)
        return Response(ProjectDetailSerializer(project).data)

    def delete(self, request, project_id):
        project = ProjectService.get_project(project_id)
        ProjectService.delete_project(project)
        return Response({'message': 'Project deleted successfully', 'id': str(project_id)})
