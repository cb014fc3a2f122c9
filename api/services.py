import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.utils import timezone

from .assignment import ReviewerAssignmentPolicy
from .exceptions import (
    AlreadyAssigned,
    AlreadyExists,
    AlreadyInTeam,
    AuthorCannotReview,
    Inactive,
    InvalidState,
    NoTeam,
    NotFound,
    NotInTeam,
)
from .models import Team, User, PullRequest


class BaseService:
    """
    Общие зависимости сервисов: политика выбора ревьюверов и логгер.

    Сервисы создаются на каждый запрос, глобального состояния нет.
    """

    def __init__(self, policy: ReviewerAssignmentPolicy = None, logger: logging.Logger = None):
        self.policy = policy or ReviewerAssignmentPolicy()
        self.logger = logger or logging.getLogger('api.services')

    @staticmethod
    def _get_team(team_id) -> Team:
        try:
            return Team.objects.get(id=team_id)
        except Team.DoesNotExist:
            raise NotFound(f"Team '{team_id}' not found")

    @staticmethod
    def _get_user(user_id) -> User:
        try:
            return User.objects.select_related('team').get(id=user_id)
        except User.DoesNotExist:
            raise NotFound(f"User '{user_id}' not found")

    @staticmethod
    def _enrich_user(user: User) -> User:
        # Команда уже подгружена через select_related
        try:
            team = user.team
        except ObjectDoesNotExist:
            team = None
        user.teams = [team] if team is not None else []
        return user

    def _enrich_pull_request(self, pr: PullRequest) -> PullRequest:
        """
        Навешивает на PR автора с командой, команду PR и ревьюверов с командами.

        Если связанный объект не найден, поле остается пустым.
        """
        try:
            author = pr.author
        except ObjectDoesNotExist:
            author = None

        if author is not None:
            self._enrich_user(author)
            pr.team = author.teams[0] if author.teams else None
        else:
            pr.team = None

        pr.assigned_reviewers = [self._enrich_user(reviewer) for reviewer in pr.reviewers.all()]
        return pr


class TeamService(BaseService):
    """
    Сервис для управления командами и их участниками
    """

    def __init__(self, policy: ReviewerAssignmentPolicy = None, logger: logging.Logger = None,
                 pull_requests: 'PullRequestService' = None):
        super().__init__(policy=policy, logger=logger)
        self.pull_requests = pull_requests or PullRequestService(policy=self.policy, logger=self.logger)

    def create_team(self, name: str) -> Team:
        # Проверяем, существует ли команда
        if Team.objects.filter(name=name).exists():
            raise AlreadyExists('team_name already exists', code='TEAM_EXISTS')

        # Параллельный дубль отсекает уникальный индекс
        try:
            with transaction.atomic():
                team = Team.objects.create(name=name)
        except IntegrityError:
            raise AlreadyExists('team_name already exists', code='TEAM_EXISTS')

        self.logger.info("Team %s created (id=%s)", team.name, team.id)
        return team

    def get_team(self, team_id) -> Team:
        return self._get_team(team_id)

    def list_teams(self) -> list:
        return list(Team.objects.all())

    @transaction.atomic
    def delete_team(self, team_id) -> None:
        team = self._get_team(team_id)

        # Сначала отвязываем участников, затем удаляем саму команду
        detached = User.objects.filter(team=team).update(team=None, updated_at=timezone.now())
        team.delete()

        self.logger.info("Team %s deleted, %d members detached", team_id, detached)

    def add_user(self, team_id, user_id) -> User:
        team = self._get_team(team_id)
        self._get_user(user_id)

        # Условный апдейт вместо check-then-act
        updated = (
            User.objects
            .filter(id=user_id)
            .exclude(team_id=team.id)
            .update(team=team, updated_at=timezone.now())
        )
        if not updated:
            raise AlreadyInTeam(f"User '{user_id}' is already in team '{team_id}'")

        self.logger.info("User %s added to team %s", user_id, team_id)
        return self._enrich_user(self._get_user(user_id))

    def remove_user(self, team_id, user_id) -> User:
        team = self._get_team(team_id)
        self._get_user(user_id)

        updated = (
            User.objects
            .filter(id=user_id, team_id=team.id)
            .update(team=None, updated_at=timezone.now())
        )
        if not updated:
            raise NotInTeam(f"User '{user_id}' is not in team '{team_id}'")

        self.logger.info("User %s removed from team %s", user_id, team_id)
        return self._enrich_user(self._get_user(user_id))

    def bulk_deactivate_users(self, team_id, user_ids: list) -> dict:
        """
        Массовая деактивация пользователей команды с переназначением открытых PR.

        Операция best-effort: если для PR не нашлось замены, он пропускается,
        остальные продолжают обрабатываться.
        """
        team = self._get_team(team_id)
        user_ids = list(dict.fromkeys(user_ids))

        # Считаем только тех, кого реально перевели из активных в неактивные
        with transaction.atomic():
            deactivated_count = (
                User.objects
                .filter(team=team, id__in=user_ids, is_active=True)
                .update(is_active=False, updated_at=timezone.now())
            )

        members = list(User.objects.filter(team=team, id__in=user_ids))

        reassigned_count = 0
        for member in members:
            open_pr_ids = list(PullRequest.objects.open_with_reviewer(member.id).values_list('id', flat=True))

            for pr_id in open_pr_ids:
                try:
                    self.pull_requests.reassign_reviewer(pr_id, member.id)
                except (DatabaseError, ValidationError, ObjectDoesNotExist) as e:
                    self.logger.warning(
                        "Could not reassign reviewer %s on PR %s: %s", member.id, pr_id, e
                    )
                    continue
                reassigned_count += 1

        self.logger.info(
            "Team %s bulk deactivation: %d users deactivated, %d PRs reassigned",
            team.id, deactivated_count, reassigned_count
        )
        return {
            'deactivated_count': deactivated_count,
            'reassigned_pr_count': reassigned_count,
        }


class UserService(BaseService):
    """
    Сервис для управления пользователями
    """

    def create_user(self, username: str, name: str, team_id=None) -> User:
        team = self._get_team(team_id) if team_id is not None else None

        if User.objects.filter(username=username).exists():
            raise AlreadyExists(f"username '{username}' already exists", code='USER_EXISTS')

        try:
            with transaction.atomic():
                user = User.objects.create(username=username, name=name, team=team, is_active=True)
        except IntegrityError:
            raise AlreadyExists(f"username '{username}' already exists", code='USER_EXISTS')

        self.logger.info("User %s created (id=%s, team=%s)", user.username, user.id, team_id)
        return self._enrich_user(user)

    def get_user(self, user_id) -> User:
        return self._enrich_user(self._get_user(user_id))

    def list_users(self, team_id=None, is_active=None) -> list:
        users = User.objects.select_related('team')
        if team_id is not None:
            users = users.filter(team_id=team_id)
        if is_active is not None:
            users = users.filter(is_active=is_active)
        return [self._enrich_user(user) for user in users]

    def update_user(self, user_id, name: str = None, is_active: bool = None) -> User:
        user = self._get_user(user_id)

        update_fields = []
        if name is not None:
            user.name = name
            update_fields.append('name')
        if is_active is not None:
            user.is_active = is_active
            update_fields.append('is_active')

        if update_fields:
            update_fields.append('updated_at')
            user.save(update_fields=update_fields)
            self.logger.info("User %s updated: %s", user.id, ', '.join(update_fields[:-1]))

        return self._enrich_user(user)

    def get_user_review_assignments(self, user_id) -> list:
        user = self._get_user(user_id)
        assigned_prs = PullRequest.objects.with_relations().filter(reviewers=user)
        return [self._enrich_pull_request(pr) for pr in assigned_prs]


class PullRequestService(BaseService):
    """
    Сервис для управления Pull Request'ами
    """

    def __init__(self, policy: ReviewerAssignmentPolicy = None, logger: logging.Logger = None,
                 max_reviewers: int = None):
        super().__init__(policy=policy, logger=logger)
        if max_reviewers is None:
            max_reviewers = getattr(settings, 'REVIEWERS_PER_PULL_REQUEST', 2)
        self.max_reviewers = max_reviewers

    @staticmethod
    def _lock_pull_request(pr_id, statuses=None) -> PullRequest:
        queryset = PullRequest.objects.select_for_update().filter(id=pr_id)
        if statuses is not None:
            queryset = queryset.filter(status__in=statuses)
        pr = queryset.first()
        if pr is None:
            raise NotFound(f"PR '{pr_id}' not found")
        return pr

    def get_pull_request(self, pr_id) -> PullRequest:
        try:
            pr = PullRequest.objects.with_relations().get(id=pr_id)
        except PullRequest.DoesNotExist:
            raise NotFound(f"PR '{pr_id}' not found")
        return self._enrich_pull_request(pr)

    def list_pull_requests(self, reviewer_id=None, author_id=None, status=None) -> list:
        if status is not None:
            status = status.upper()
            if status not in PullRequest.Status.values:
                raise ValidationError(f"unknown status '{status.lower()}'", code='INVALID_STATUS')

        prs = PullRequest.objects.filtered(reviewer_id=reviewer_id, author_id=author_id, status=status)
        return [self._enrich_pull_request(pr) for pr in prs.with_relations()]

    @transaction.atomic
    def create_pull_request(self, title: str, author_id) -> PullRequest:
        # Получаем автора
        author = self._get_user(author_id)

        # Назначаем ревьюверов, только если автор состоит в команде
        reviewers = self._assign_reviewers(author) if author.team_id is not None else []

        pr = PullRequest.objects.create(title=title, author=author)
        if reviewers:
            pr.reviewers.add(*reviewers)

        if reviewers:
            self.logger.info(
                "PR %s created by %s with reviewers %s",
                pr.id, author.id, [reviewer.id for reviewer in reviewers]
            )
        else:
            self.logger.warning("PR %s created by %s without reviewers", pr.id, author.id)

        return self.get_pull_request(pr.id)

    def _assign_reviewers(self, author: User) -> list:
        """
        Выбирает до max_reviewers активных участников команды автора.

        Ошибка выбора не мешает созданию PR: он просто создается без ревьюверов.
        """
        try:
            with transaction.atomic():
                candidates = list(User.objects.review_candidates(author.team_id, exclude_ids=[author.id]))
            return self.policy.select_reviewers(candidates, self.max_reviewers)
        except (DatabaseError, ValidationError, ValueError):
            self.logger.warning("Reviewer selection failed for author %s", author.id, exc_info=True)
            return []

    @transaction.atomic
    def merge_pull_request(self, pr_id) -> PullRequest:
        # CLOSED PR сюда не попадает и считается ненайденным
        pr = self._lock_pull_request(pr_id, statuses=[PullRequest.Status.OPEN, PullRequest.Status.MERGED])

        # Повторный merge не трогает merged_at
        if pr.status != PullRequest.Status.MERGED:
            pr.status = PullRequest.Status.MERGED
            pr.merged_at = timezone.now()
            pr.save(update_fields=['status', 'merged_at', 'updated_at'])
            self.logger.info("PR %s merged", pr.id)

        return self.get_pull_request(pr.id)

    @transaction.atomic
    def close_pull_request(self, pr_id) -> PullRequest:
        pr = self._lock_pull_request(pr_id)

        if pr.status != PullRequest.Status.OPEN:
            raise InvalidState('PR is already merged or closed', code='PR_FINALIZED')

        pr.status = PullRequest.Status.CLOSED
        pr.save(update_fields=['status', 'updated_at'])
        self.logger.info("PR %s closed", pr.id)

        return self.get_pull_request(pr.id)

    @transaction.atomic
    def add_reviewer(self, pr_id, reviewer_id) -> PullRequest:
        pr = self._lock_pull_request(pr_id)

        # Автор отсекается до проверки статуса
        if pr.author_id == reviewer_id:
            raise AuthorCannotReview('author cannot be a reviewer')

        if pr.is_finalized:
            raise InvalidState('cannot add reviewers to merged or closed PR')

        if pr.reviewers.filter(id=reviewer_id).exists():
            raise AlreadyAssigned('reviewer already assigned to this PR')

        reviewer = self._get_user(reviewer_id)
        if not reviewer.is_active:
            raise Inactive(f"reviewer '{reviewer_id}' is not active")

        pr.reviewers.add(reviewer)
        pr.save(update_fields=['updated_at'])
        self.logger.info("Reviewer %s added to PR %s", reviewer.id, pr.id)

        return self.get_pull_request(pr.id)

    @transaction.atomic
    def reassign_reviewer(self, pr_id, old_reviewer_id) -> PullRequest:
        pr = self._lock_pull_request(pr_id)

        # Проверяем доменные правила
        if pr.status == PullRequest.Status.MERGED:
            raise InvalidState('cannot reassign on merged PR', code='PR_MERGED')

        current_reviewers = list(pr.reviewers.all())
        old_reviewer = next((user for user in current_reviewers if user.id == old_reviewer_id), None)
        if old_reviewer is None:
            raise NotFound('reviewer is not assigned to this PR', code='NOT_ASSIGNED')

        if old_reviewer.team_id is None:
            raise NoTeam(f"reviewer '{old_reviewer_id}' is not in a team")

        # Ищем кандидатов из команды старого ревьювера, кроме автора и уже назначенных
        candidates = list(User.objects.review_candidates(old_reviewer.team_id, exclude_ids=[pr.author_id]))
        new_reviewer = self.policy.select_replacement(
            candidates,
            exclude_ids={user.id for user in current_reviewers},
        )

        # Обновляем ревьюверов
        pr.reviewers.remove(old_reviewer)
        pr.reviewers.add(new_reviewer)
        pr.save(update_fields=['updated_at'])

        self.logger.info(
            "PR %s reviewer %s replaced by %s", pr.id, old_reviewer.id, new_reviewer.id
        )
        return self.get_pull_request(pr.id)


class StatsService(BaseService):
    """
    Сервис для сбора статистики
    """

    def __init__(self, policy: ReviewerAssignmentPolicy = None, logger: logging.Logger = None,
                 top_n: int = None):
        super().__init__(policy=policy, logger=logger)
        if top_n is None:
            top_n = getattr(settings, 'STATISTICS_TOP_N', 20)
        self.top_n = top_n

    def get_statistics(self, top_n: int = None) -> dict:
        """
        Returns:
            dict: Счетчики PR по статусам и топ пользователей и команд
        """
        limit = top_n if top_n is not None else self.top_n

        totals = PullRequest.objects.aggregate(
            total_prs=Count('id'),
            open_prs=Count('id', filter=Q(status=PullRequest.Status.OPEN)),
            merged_prs=Count('id', filter=Q(status=PullRequest.Status.MERGED)),
            closed_prs=Count('id', filter=Q(status=PullRequest.Status.CLOSED)),
        )

        user_stats = (
            User.objects
            .annotate(assignment_count=Count('assigned_prs'))
            .filter(assignment_count__gt=0)
            .order_by('-assignment_count', 'name')
            .values('id', 'name', 'assignment_count')[:limit]
        )

        team_stats = (
            Team.objects
            .annotate(pr_count=Count('members__authored_prs', distinct=True))
            .filter(pr_count__gt=0)
            .order_by('-pr_count', 'name')
            .values('id', 'name', 'pr_count')[:limit]
        )

        return {
            **totals,
            'user_stats': [
                {'user_id': row['id'], 'user_name': row['name'], 'assignment_count': row['assignment_count']}
                for row in user_stats
            ],
            'team_stats': [
                {'team_id': row['id'], 'team_name': row['name'], 'pr_count': row['pr_count']}
                for row in team_stats
            ],
        }
