from rest_framework import serializers
from .models import Team, User, PullRequest


class TeamSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Team
        fields = ['id', 'name', 'createdAt', 'updatedAt']


class UserSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source='is_active')
    teamId = serializers.IntegerField(source='team_id', allow_null=True)
    teams = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'isActive', 'teamId', 'teams', 'createdAt', 'updatedAt']

    @staticmethod
    def get_teams(obj):
        # teams проставляет сервис при обогащении
        return TeamSerializer(getattr(obj, 'teams', []), many=True).data


class PullRequestSerializer(serializers.ModelSerializer):
    authorId = serializers.IntegerField(source='author_id')
    author = serializers.SerializerMethodField()
    team = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    reviewers = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')
    mergedAt = serializers.DateTimeField(source='merged_at', allow_null=True)
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = PullRequest
        fields = [
            'id', 'title', 'authorId', 'author', 'team', 'status',
            'reviewers', 'createdAt', 'mergedAt', 'updatedAt'
        ]

    @staticmethod
    def get_author(obj):
        return UserSerializer(obj.author).data if hasattr(obj.author, 'teams') else None

    @staticmethod
    def get_team(obj):
        team = getattr(obj, 'team', None)
        return TeamSerializer(team).data if team is not None else None

    @staticmethod
    def get_status(obj):
        # Наружу статус уходит в нижнем регистре
        return obj.status.lower()

    @staticmethod
    def get_reviewers(obj):
        reviewers = getattr(obj, 'assigned_reviewers', None)
        if reviewers is None:
            reviewers = obj.reviewers.all()
        return UserSerializer(reviewers, many=True).data


class UserStatisticSerializer(serializers.Serializer):
    userId = serializers.IntegerField(source='user_id')
    userName = serializers.CharField(source='user_name')
    assignmentCount = serializers.IntegerField(source='assignment_count')


class TeamStatisticSerializer(serializers.Serializer):
    teamId = serializers.IntegerField(source='team_id')
    teamName = serializers.CharField(source='team_name')
    prCount = serializers.IntegerField(source='pr_count')


class StatsSerializer(serializers.Serializer):
    totalPRs = serializers.IntegerField(source='total_prs')
    openPRs = serializers.IntegerField(source='open_prs')
    mergedPRs = serializers.IntegerField(source='merged_prs')
    closedPRs = serializers.IntegerField(source='closed_prs')
    userStats = UserStatisticSerializer(source='user_stats', many=True)
    teamStats = TeamStatisticSerializer(source='team_stats', many=True)


class BulkDeactivateResultSerializer(serializers.Serializer):
    deactivatedCount = serializers.IntegerField(source='deactivated_count')
    reassignedPRCount = serializers.IntegerField(source='reassigned_pr_count')


# Тела запросов

class CreateTeamRequestSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1, max_length=100)


class TeamMemberRequestSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1)


class BulkDeactivateRequestSerializer(serializers.Serializer):
    userIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class CreateUserRequestSerializer(serializers.Serializer):
    username = serializers.CharField(min_length=1, max_length=100)
    name = serializers.CharField(min_length=1, max_length=100)
    teamId = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class UpdateUserRequestSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1, max_length=100, required=False)
    isActive = serializers.BooleanField(required=False)


class CreatePullRequestRequestSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=1, max_length=255)
    authorId = serializers.IntegerField(min_value=1)


class AddReviewerRequestSerializer(serializers.Serializer):
    reviewerId = serializers.IntegerField(min_value=1)


class ReassignReviewerRequestSerializer(serializers.Serializer):
    oldReviewerId = serializers.IntegerField(min_value=1)
