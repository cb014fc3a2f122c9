from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..models import PullRequest
from ..services import PullRequestService
from ..serializers import (
    AddReviewerRequestSerializer,
    CreatePullRequestRequestSerializer,
    PullRequestSerializer,
    ReassignReviewerRequestSerializer,
)
from .errors import error_response, service_error, validation_error


@api_view(['GET', 'POST'])
def pull_requests(request):
    """GET /pull-requests - Список PR с фильтрами, POST /pull-requests - Создать PR"""
    if request.method == 'POST':
        return pullrequest_create(request)

    params = request.query_params
    pr_status = params.get('status')
    if pr_status and pr_status.upper() not in PullRequest.Status.values:
        return error_response(
            'VALIDATION_ERROR',
            'status must be one of: open, merged, closed',
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        reviewer_id = int(params['userId']) if params.get('userId') else None
        author_id = int(params['authorId']) if params.get('authorId') else None
    except ValueError:
        return error_response(
            'VALIDATION_ERROR',
            'userId and authorId must be integers',
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        prs = PullRequestService().list_pull_requests(
            reviewer_id=reviewer_id,
            author_id=author_id,
            status=pr_status or None,
        )
        return Response(PullRequestSerializer(prs, many=True).data)

    except Exception as e:
        return service_error(e)


def pullrequest_create(request):
    serializer = CreatePullRequestRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    data = serializer.validated_data

    try:
        pr = PullRequestService().create_pull_request(data['title'], data['authorId'])
        return Response(PullRequestSerializer(pr).data, status=status.HTTP_201_CREATED)

    except Exception as e:
        return service_error(e)


@api_view(['GET'])
def pullrequest_detail(request, pr_id):
    """GET /pull-requests/{id} - Получить PR"""
    try:
        pr = PullRequestService().get_pull_request(pr_id)
        return Response(PullRequestSerializer(pr).data)

    except Exception as e:
        return service_error(e)


@api_view(['POST', 'PUT'])
def pullrequest_reviewers(request, pr_id):
    """POST /pull-requests/{id}/reviewers - Добавить ревьювера, PUT - Переназначить ревьювера"""
    if request.method == 'PUT':
        return pullrequest_reassign(request, pr_id)

    serializer = AddReviewerRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    try:
        pr = PullRequestService().add_reviewer(pr_id, serializer.validated_data['reviewerId'])
        return Response(PullRequestSerializer(pr).data)

    except Exception as e:
        return service_error(e)


def pullrequest_reassign(request, pr_id):
    serializer = ReassignReviewerRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer)

    try:
        pr = PullRequestService().reassign_reviewer(pr_id, serializer.validated_data['oldReviewerId'])
        return Response(PullRequestSerializer(pr).data)

    except Exception as e:
        return service_error(e)


@api_view(['POST'])
def pullrequest_merge(request, pr_id):
    """POST /pull-requests/{id}/merge - Пометить PR как MERGED"""
    try:
        pr = PullRequestService().merge_pull_request(pr_id)
        return Response(PullRequestSerializer(pr).data)

    except Exception as e:
        return service_error(e)


@api_view(['POST'])
def pullrequest_close(request, pr_id):
    """POST /pull-requests/{id}/close - Закрыть PR без мержа"""
    try:
        pr = PullRequestService().close_pull_request(pr_id)
        return Response(PullRequestSerializer(pr).data)

    except Exception as e:
        return service_error(e)
