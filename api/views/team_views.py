from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..services import TeamService
from ..serializers import (
    BulkDeactivateRequestSerializer,
    BulkDeactivateResultSerializer,
    CreateTeamRequestSerializer,
    TeamMemberRequestSerializer,
    TeamSerializer,
    UserSerializer,
)
from .errors import service_error, validation_error


@api_view(['GET', 'POST'])
def teams(request):
    """GET /teams - Список команд, POST /teams - Создать команду"""
    if request.method == 'POST':
        return team_create(request)

    try:
        team_list = TeamService().list_teams()
        return Response(TeamSerializer(team_list, many=True).data)

    except Exception as e:
        return service_error(e)


def team_create(request):
    serializer = CreateTeamRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    try:
        team = TeamService().create_team(serializer.validated_data['name'])
        return Response(TeamSerializer(team).data, status=status.HTTP_201_CREATED)

    except Exception as e:
        return service_error(e)


@api_view(['GET', 'DELETE'])
def team_detail(request, team_id):
    """GET /teams/{id} - Получить команду, DELETE /teams/{id} - Удалить команду"""
    try:
        service = TeamService()

        if request.method == 'DELETE':
            service.delete_team(team_id)
            return Response(status=status.HTTP_204_NO_CONTENT)

        return Response(TeamSerializer(service.get_team(team_id)).data)

    except Exception as e:
        return service_error(e)


@api_view(['POST', 'DELETE'])
def team_members(request, team_id):
    """POST /teams/{id}/users - Добавить пользователя, DELETE - Убрать пользователя из команды"""
    serializer = TeamMemberRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    user_id = serializer.validated_data['userId']

    try:
        service = TeamService()

        if request.method == 'DELETE':
            user = service.remove_user(team_id, user_id)
        else:
            user = service.add_user(team_id, user_id)

        return Response(UserSerializer(user).data)

    except Exception as e:
        return service_error(e)


@api_view(['POST'])
def team_bulk_deactivate(request, team_id):
    """POST /teams/{id}/users/deactivate - Массовая деактивация с переназначением PR"""
    serializer = BulkDeactivateRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    try:
        result = TeamService().bulk_deactivate_users(team_id, serializer.validated_data['userIds'])
        return Response(BulkDeactivateResultSerializer(result).data)

    except Exception as e:
        return service_error(e)
