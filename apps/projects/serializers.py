"""
Serializers for projects.
"""
from rest_framework import serializers

from apps.master_data.models import ProjectMode, State
from apps.projects.models import Project


class ProjectListSerializer(serializers.ModelSerializer):
    """List row with mode name and a comma-joined state list."""

    modeOfProjectId = serializers.UUIDField(source='mode_of_project_id', read_only=True, allow_null=True)
    modeName = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    stateNames = serializers.SerializerMethodField()
    stateIds = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'modeOfProjectId', 'modeName', 'createdAt',
            'updatedAt', 'stateNames', 'stateIds',
        ]

    def get_modeName(self, obj):
        return obj.mode_of_project.name if obj.mode_of_project_id else None

    def get_stateNames(self, obj):
        return ', '.join(state.name for state in obj.states.all())

    def get_stateIds(self, obj):
        return [str(state.id) for state in obj.states.all()]


class ProjectDetailSerializer(serializers.ModelSerializer):
    """Single project with its mode and state links."""

    modeOfProjectId = serializers.UUIDField(source='mode_of_project_id', read_only=True, allow_null=True)
    mode = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    stateIds = serializers.SerializerMethodField()
    states = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'modeOfProjectId', 'mode', 'createdAt',
            'updatedAt', 'stateIds', 'states',
        ]

    def get_mode(self, obj):
        mode = obj.mode_of_project
        if mode is None:
            return None
        return {'id': str(mode.id), 'name': mode.name}

    def get_stateIds(self, obj):
        return [str(state.id) for state in obj.states.all()]

    def get_states(self, obj):
        return [
            {'state': {'id': str(state.id), 'name': state.name}}
            for state in obj.states.all()
        ]


class ProjectWriteSerializer(serializers.Serializer):
    """Create/update body. On update every field is optional."""

    name = serializers.CharField(max_length=255, trim_whitespace=True)
    modeOfProjectId = serializers.PrimaryKeyRelatedField(
        source='mode_of_project',
        queryset=ProjectMode.objects.all(),
        required=False,
        allow_null=True
    )
    stateIds = serializers.PrimaryKeyRelatedField(
        source='states',
        queryset=State.objects.all(),
        many=True,
        required=False
    )
