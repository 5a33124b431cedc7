"""
Projects and the states they operate in.
"""
from django.db import models
from apps.core.models import BaseModel


class Project(BaseModel):
    """
    A project groups invoices and the staff assigned to it.
    """

    name = models.CharField(max_length=255, help_text="Project name")
    mode_of_project = models.ForeignKey(
        'master_data.ProjectMode',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='projects',
        db_column='mode_of_project',
        help_text="Mode of execution"
    )
    states = models.ManyToManyField(
        'master_data.State',
        through='ProjectState',
        related_name='projects',
        blank=True,
    )

    class Meta:
        db_table = 'project'
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class ProjectState(models.Model):
    """Link row between a project and a state."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='state_links',
        db_column='project_id'
    )
    state = models.ForeignKey(
        'master_data.State',
        on_delete=models.CASCADE,
        related_name='project_links',
        db_column='state_id'
    )

    class Meta:
        db_table = 'project_state'
        constraints = [
            models.UniqueConstraint(fields=['project', 'state'], name='uq_project_state'),
        ]

    def __str__(self):
        return f"{self.project_id}:{self.state_id}"
