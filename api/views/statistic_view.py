from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..services import StatsService
from ..serializers import StatsSerializer
from .errors import service_error


@api_view(['GET'])
def stats_overview(request):
    """
    GET /statistics - Общая статистика системы
    """
    try:
        stats = StatsService().get_statistics()
        serializer = StatsSerializer(stats)
        return Response(serializer.data)

    except Exception as e:
        return service_error(e)
