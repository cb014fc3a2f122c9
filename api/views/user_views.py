from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..services import UserService
from ..serializers import (
    CreateUserRequestSerializer,
    PullRequestSerializer,
    UpdateUserRequestSerializer,
    UserSerializer,
)
from .errors import error_response, service_error, validation_error


def _parse_bool(value):
    lowered = value.strip().lower()
    if lowered in ('true', '1'):
        return True
    if lowered in ('false', '0'):
        return False
    raise ValueError(value)


@api_view(['GET', 'POST'])
def users(request):
    """GET /users - Список пользователей с фильтрами, POST /users - Создать пользователя"""
    if request.method == 'POST':
        return user_create(request)

    try:
        team_id = request.query_params.get('teamId')
        is_active = request.query_params.get('isActive')
        team_id = int(team_id) if team_id else None
        is_active = _parse_bool(is_active) if is_active else None
    except ValueError:
        return error_response(
            'VALIDATION_ERROR',
            'teamId must be an integer and isActive a boolean',
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        user_list = UserService().list_users(team_id=team_id, is_active=is_active)
        return Response(UserSerializer(user_list, many=True).data)

    except Exception as e:
        return service_error(e)


def user_create(request):
    serializer = CreateUserRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    data = serializer.validated_data

    try:
        user = UserService().create_user(data['username'], data['name'], team_id=data.get('teamId'))
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    except Exception as e:
        return service_error(e)


@api_view(['GET', 'PATCH'])
def user_detail(request, user_id):
    """GET /users/{id} - Получить пользователя, PATCH /users/{id} - Частичное обновление"""
    if request.method == 'GET':
        try:
            return Response(UserSerializer(UserService().get_user(user_id)).data)
        except Exception as e:
            return service_error(e)

    serializer = UpdateUserRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    data = serializer.validated_data

    try:
        user = UserService().update_user(user_id, name=data.get('name'), is_active=data.get('isActive'))
        return Response(UserSerializer(user).data)

    except Exception as e:
        return service_error(e)


@api_view(['GET'])
def user_reviews(request, user_id):
    """GET /users/{id}/reviews - Получить PR'ы, где пользователь назначен ревьювером"""
    try:
        assigned_prs = UserService().get_user_review_assignments(user_id)

        return Response({
            'userId': user_id,
            'pullRequests': PullRequestSerializer(assigned_prs, many=True).data
        })

    except Exception as e:
        return service_error(e)
