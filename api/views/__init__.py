from .team_views import teams, team_detail, team_members, team_bulk_deactivate
from .user_views import users, user_detail, user_reviews
from .pull_request_views import (
    pull_requests, pullrequest_detail, pullrequest_reviewers, pullrequest_merge, pullrequest_close
)
from .statistic_view import stats_overview
from .health_views import health_check

__all__ = [
    'teams', 'team_detail', 'team_members', 'team_bulk_deactivate',
    'users', 'user_detail', 'user_reviews',
    'pull_requests', 'pullrequest_detail', 'pullrequest_reviewers', 'pullrequest_merge', 'pullrequest_close',
    'stats_overview',
    'health_check'
]
