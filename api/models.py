from django.db import models
from django.db.models import Prefetch
from django.utils import timezone


class Team(models.Model):
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'teams'
        ordering = ['id']


class UserQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def review_candidates(self, team_id, exclude_ids=()):
        """Active members of the team, minus the given user ids."""
        return self.active().filter(team_id=team_id).exclude(id__in=list(exclude_ids))


class User(models.Model):
    username = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=100)
    team = models.ForeignKey(Team, on_delete=models.SET_NULL, related_name='members', null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserQuerySet.as_manager()

    def __str__(self):
        return f"{self.username} ({self.id})"

    class Meta:
        db_table = 'users'
        ordering = ['id']
        indexes = [
            models.Index(fields=['team', 'is_active'], name='users_team_active_idx'),
        ]


class PullRequestQuerySet(models.QuerySet):
    def with_relations(self):
        return self.select_related('author__team').prefetch_related(
            Prefetch('reviewers', queryset=User.objects.select_related('team').order_by('id'))
        )

    def open_with_reviewer(self, reviewer_id):
        return self.filter(status=PullRequest.Status.OPEN, reviewers__id=reviewer_id).distinct()

    def filtered(self, reviewer_id=None, author_id=None, status=None):
        queryset = self
        if reviewer_id is not None:
            queryset = queryset.filter(reviewers__id=reviewer_id)
        if author_id is not None:
            queryset = queryset.filter(author_id=author_id)
        if status is not None:
            queryset = queryset.filter(status=status)
        return queryset.distinct()


class PullRequest(models.Model):
    class Status(models.TextChoices):
        OPEN = 'OPEN', 'Open'
        MERGED = 'MERGED', 'Merged'
        CLOSED = 'CLOSED', 'Closed'

    title = models.CharField(max_length=255)
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='authored_prs')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    reviewers = models.ManyToManyField(
        User,
        through='PullRequestReviewer',
        related_name='assigned_prs',
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    merged_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PullRequestQuerySet.as_manager()

    def clean(self):
        if self.status == self.Status.MERGED and not self.merged_at:
            self.merged_at = timezone.now()

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    @property
    def is_finalized(self):
        return self.status in (self.Status.MERGED, self.Status.CLOSED)

    def __str__(self):
        return f"{self.title} ({self.id})"

    class Meta:
        db_table = 'pull_requests'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='pull_requests_status_idx'),
        ]


class PullRequestReviewer(models.Model):
    pull_request = models.ForeignKey(PullRequest, on_delete=models.CASCADE, db_column='pr_id')
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, db_column='reviewer_id')
    assigned_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.reviewer_id} -> {self.pull_request_id}"

    class Meta:
        db_table = 'pr_reviewers'
        constraints = [
            models.UniqueConstraint(fields=['pull_request', 'reviewer'], name='unique_pr_reviewer'),
        ]
