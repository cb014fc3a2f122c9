from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from api.exceptions import AlreadyExists, AlreadyInTeam, NotFound, NotInTeam
from api.models import Team, User, PullRequest
from api.services import TeamService


class TeamServiceTest(TestCase):
    def setUp(self):
        self.service = TeamService()

    def test_create_team_success(self):
        """Тест успешного создания команды"""
        team = self.service.create_team("backend")

        self.assertEqual(team.name, "backend")
        self.assertTrue(Team.objects.filter(name="backend").exists())

    def test_create_team_duplicate(self):
        """Тест создания дубликата команды"""
        self.service.create_team("backend")

        with self.assertRaises(AlreadyExists) as context:
            self.service.create_team("backend")

        self.assertEqual(context.exception.code, 'TEAM_EXISTS')
        self.assertEqual(Team.objects.filter(name="backend").count(), 1)

    def test_get_team_not_found(self):
        """Тест получения несуществующей команды"""
        with self.assertRaises(NotFound):
            self.service.get_team(999999)

    def test_list_teams(self):
        self.service.create_team("backend")
        self.service.create_team("frontend")

        self.assertEqual([team.name for team in self.service.list_teams()], ["backend", "frontend"])

    def test_delete_team_detaches_members(self):
        """Удаление команды отвязывает участников"""
        team = self.service.create_team("backend")
        user = User.objects.create(username="alice", name="Alice", team=team)

        self.service.delete_team(team.id)

        self.assertFalse(Team.objects.filter(id=team.id).exists())
        user.refresh_from_db()
        self.assertIsNone(user.team_id)

    def test_delete_team_not_found(self):
        with self.assertRaises(NotFound):
            self.service.delete_team(999999)


class TeamMembershipTest(TestCase):
    def setUp(self):
        self.service = TeamService()
        self.team = Team.objects.create(name="backend")
        self.other_team = Team.objects.create(name="frontend")
        self.user = User.objects.create(username="alice", name="Alice")

    def test_add_user_success(self):
        user = self.service.add_user(self.team.id, self.user.id)

        self.assertEqual(user.team, self.team)
        self.assertEqual(user.teams, [self.team])

    def test_add_user_moves_between_teams(self):
        """Пользователь состоит не более чем в одной команде"""
        self.service.add_user(self.other_team.id, self.user.id)

        user = self.service.add_user(self.team.id, self.user.id)

        self.assertEqual(user.team, self.team)

    def test_add_user_already_in_team(self):
        self.service.add_user(self.team.id, self.user.id)

        with self.assertRaises(AlreadyInTeam):
            self.service.add_user(self.team.id, self.user.id)

    def test_add_user_unknown_team_or_user(self):
        with self.assertRaises(NotFound):
            self.service.add_user(999999, self.user.id)

        with self.assertRaises(NotFound):
            self.service.add_user(self.team.id, 999999)

    def test_remove_user_success(self):
        self.service.add_user(self.team.id, self.user.id)

        user = self.service.remove_user(self.team.id, self.user.id)

        self.assertIsNone(user.team_id)
        self.assertEqual(user.teams, [])

    def test_remove_user_not_in_team(self):
        """Нельзя убрать пользователя из чужой команды"""
        self.service.add_user(self.other_team.id, self.user.id)

        with self.assertRaises(NotInTeam):
            self.service.remove_user(self.team.id, self.user.id)

        self.user.refresh_from_db()
        self.assertEqual(self.user.team, self.other_team)

    def test_remove_user_unknown(self):
        with self.assertRaises(NotFound):
            self.service.remove_user(self.team.id, 999999)


class BulkDeactivateTest(TestCase):
    def setUp(self):
        self.service = TeamService()
        self.team = Team.objects.create(name="backend")

        self.author = User.objects.create(username="author", name="Author", team=self.team)
        self.leaving1 = User.objects.create(username="leaving1", name="Leaving 1", team=self.team)
        self.leaving2 = User.objects.create(username="leaving2", name="Leaving 2", team=self.team)
        self.leaving3 = User.objects.create(username="leaving3", name="Leaving 3", team=self.team)
        self.spare1 = User.objects.create(username="spare1", name="Spare 1", team=self.team)
        self.spare2 = User.objects.create(username="spare2", name="Spare 2", team=self.team)

    def _reviewer_ids(self, pr):
        return set(pr.reviewers.values_list('id', flat=True))

    def test_bulk_deactivate_reassigns_open_prs(self):
        """3 пользователя, двое ревьюят по одному открытому PR: 3 деактивировано, 2 PR переназначено"""
        pr1 = PullRequest.objects.create(title="PR 1", author=self.author)
        pr1.reviewers.add(self.leaving1)
        pr2 = PullRequest.objects.create(title="PR 2", author=self.author)
        pr2.reviewers.add(self.leaving2)

        result = self.service.bulk_deactivate_users(
            self.team.id, [self.leaving1.id, self.leaving2.id, self.leaving3.id]
        )

        self.assertEqual(result, {'deactivated_count': 3, 'reassigned_pr_count': 2})
        self.assertFalse(User.objects.filter(team=self.team, username__startswith="leaving", is_active=True).exists())

        spares = {self.spare1.id, self.spare2.id}
        for pr in (pr1, pr2):
            reviewer_ids = self._reviewer_ids(pr)
            self.assertEqual(len(reviewer_ids), 1)
            self.assertTrue(reviewer_ids <= spares)

    def test_bulk_deactivate_skips_pr_without_replacement(self):
        """Если замены нет, PR пропускается, остальные обрабатываются"""
        pr = PullRequest.objects.create(title="PR", author=self.author)
        pr.reviewers.add(self.leaving1, self.spare1, self.spare2)

        with self.assertLogs('api.services', level='WARNING'):
            result = self.service.bulk_deactivate_users(
                self.team.id, [self.leaving1.id, self.leaving2.id, self.leaving3.id]
            )

        self.assertEqual(result, {'deactivated_count': 3, 'reassigned_pr_count': 0})
        self.assertIn(self.leaving1.id, self._reviewer_ids(pr))

    def test_bulk_deactivate_ignores_merged_prs(self):
        pr = PullRequest.objects.create(title="PR", author=self.author, status=PullRequest.Status.MERGED)
        pr.reviewers.add(self.leaving1)

        result = self.service.bulk_deactivate_users(self.team.id, [self.leaving1.id])

        self.assertEqual(result, {'deactivated_count': 1, 'reassigned_pr_count': 0})
        self.assertEqual(self._reviewer_ids(pr), {self.leaving1.id})

    def test_bulk_deactivate_counts_only_flipped_members(self):
        """Уже неактивные и чужие пользователи не считаются"""
        self.leaving1.is_active = False
        self.leaving1.save()
        stranger = User.objects.create(username="stranger", name="Stranger")

        result = self.service.bulk_deactivate_users(
            self.team.id, [self.leaving1.id, self.leaving2.id, stranger.id]
        )

        self.assertEqual(result['deactivated_count'], 1)
        stranger.refresh_from_db()
        self.assertTrue(stranger.is_active)

    def test_bulk_deactivate_continues_after_database_error(self):
        """Ошибка базы на одном PR не прерывает обработку остальных"""
        pr1 = PullRequest.objects.create(title="PR 1", author=self.author)
        pr1.reviewers.add(self.leaving1)
        pr2 = PullRequest.objects.create(title="PR 2", author=self.author)
        pr2.reviewers.add(self.leaving2)

        reassign = self.service.pull_requests.reassign_reviewer

        def failing_on_first_pr(pr_id, reviewer_id):
            if pr_id == pr1.id:
                raise DatabaseError("deadlock detected")
            return reassign(pr_id, reviewer_id)

        with patch.object(self.service.pull_requests, 'reassign_reviewer', side_effect=failing_on_first_pr):
            with self.assertLogs('api.services', level='WARNING'):
                result = self.service.bulk_deactivate_users(
                    self.team.id, [self.leaving1.id, self.leaving2.id, self.leaving3.id]
                )

        self.assertEqual(result, {'deactivated_count': 3, 'reassigned_pr_count': 1})
        self.assertEqual(self._reviewer_ids(pr1), {self.leaving1.id})
        self.assertTrue(self._reviewer_ids(pr2) <= {self.spare1.id, self.spare2.id})

    def test_bulk_deactivate_unknown_team(self):
        with self.assertRaises(NotFound):
            self.service.bulk_deactivate_users(999999, [self.leaving1.id])
