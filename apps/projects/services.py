"""
Project service: scoped reads and transactional writes.
"""
import logging
from typing import Any, Dict

from django.db import transaction
from django.db.models import ProtectedError

from apps.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from apps.projects.models import Project, ProjectState

logger = logging.getLogger(__name__)


class ProjectService:
    """Business logic for projects and their state links."""

    @staticmethod
    def base_queryset():
        return Project.objects.select_related('mode_of_project').prefetch_related('states')

    @classmethod
    def list_projects(cls, account, conditional: bool):
        """
        Projects visible to the caller.

        A conditional grant limits the caller to their own project, and to
        nothing when they have none.
        """
        queryset = cls.base_queryset().order_by('-created_at')
        if conditional:
            if not account.project_id:
                return queryset.none()
            queryset = queryset.filter(id=account.project_id)
        return queryset

    @classmethod
    def get_project(cls, project_id, account=None, conditional: bool = False) -> Project:
        if conditional and str(account.project_id) != str(project_id):
            raise PermissionDeniedError('Access denied to this project')

        project = cls.base_queryset().filter(id=project_id).first()
        if project is None:
            raise NotFoundError('Project not found')
        return project

    @staticmethod
    def _replace_states(project: Project, states):
        ProjectState.objects.filter(project=project).delete()
        ProjectState.objects.bulk_create(
            [ProjectState(project=project, state=state) for state in dict.fromkeys(states)]
        )

    @classmethod
    @transaction.atomic
    def create_project(cls, data: Dict[str, Any]) -> Project:
        project = Project.objects.create(
            name=data['name'],
            mode_of_project=data.get('mode_of_project'),
        )
        cls._replace_states(project, data.get('states', []))

        logger.info("Project created", extra={'project_id': str(project.id)})
        return cls.base_queryset().get(id=project.id)

    @classmethod
    @transaction.atomic
    def update_project(cls, project: Project, data: Dict[str, Any]) -> Project:
        """Partial update; a given state list replaces the existing links."""
        fields = []
        for attr in ('name', 'mode_of_project'):
            if attr in data:
                setattr(project, attr, data[attr])
                fields.append(attr)
        if fields:
            project.save(update_fields=fields + ['updated_at'])

        if 'states' in data:
            cls._replace_states(project, data['states'])

        return cls.base_queryset().get(id=project.id)

    @staticmethod
    def delete_project(project: Project):
        """Delete a project and its state links. Referenced projects are kept."""
        project_id = project.id
        try:
            with transaction.atomic():
                project.delete()
        except ProtectedError:
            raise ConflictError('Project is in use')
        logger.info("Project deleted", extra={'project_id': str(project_id)})
