from django.urls import path
from .views import team_views, user_views, health_views, pull_request_views, statistic_view

app_name = 'api'

urlpatterns = [
    path('health', health_views.health_check, name='health-check'),
    path('teams', team_views.teams, name='teams'),
    path('teams/<int:team_id>', team_views.team_detail, name='team-detail'),
    path('teams/<int:team_id>/users', team_views.team_members, name='team-members'),
    path('teams/<int:team_id>/users/deactivate', team_views.team_bulk_deactivate, name='team-bulk-deactivate'),
    path('users', user_views.users, name='users'),
    path('users/<int:user_id>', user_views.user_detail, name='user-detail'),
    path('users/<int:user_id>/reviews', user_views.user_reviews, name='user-reviews'),
    path('pull-requests', pull_request_views.pull_requests, name='pull-requests'),
    path('pull-requests/<int:pr_id>', pull_request_views.pullrequest_detail, name='pr-detail'),
    path('pull-requests/<int:pr_id>/reviewers', pull_request_views.pullrequest_reviewers, name='pr-reviewers'),
    path('pull-requests/<int:pr_id>/merge', pull_request_views.pullrequest_merge, name='pr-merge'),
    path('pull-requests/<int:pr_id>/close', pull_request_views.pullrequest_close, name='pr-close'),
    path('statistics', statistic_view.stats_overview, name='statistic-view'),
]
