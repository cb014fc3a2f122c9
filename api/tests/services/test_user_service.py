from django.test import TestCase
from api.exceptions import AlreadyExists, NotFound
from api.models import Team, User, PullRequest
from api.services import UserService


class UserServiceTest(TestCase):
    def setUp(self):
        self.service = UserService()
        self.team = Team.objects.create(name="backend")

        self.user1 = User.objects.create(username="alice", name="Alice", team=self.team)
        self.user2 = User.objects.create(username="bob", name="Bob", team=self.team)

        # Создаем PR где user2 - ревьювер
        self.pr = PullRequest.objects.create(title="Test PR", author=self.user1)
        self.pr.reviewers.add(self.user2)

    def test_create_user_with_team(self):
        user = self.service.create_user("carol", "Carol", team_id=self.team.id)

        self.assertTrue(user.is_active)
        self.assertEqual(user.team, self.team)
        self.assertEqual(user.teams, [self.team])

    def test_create_user_without_team(self):
        user = self.service.create_user("dave", "Dave")

        self.assertIsNone(user.team_id)
        self.assertEqual(user.teams, [])

    def test_create_user_unknown_team(self):
        with self.assertRaises(NotFound):
            self.service.create_user("carol", "Carol", team_id=999999)

        self.assertFalse(User.objects.filter(username="carol").exists())

    def test_create_user_duplicate_username(self):
        with self.assertRaises(AlreadyExists) as context:
            self.service.create_user("alice", "Another Alice")

        self.assertEqual(context.exception.code, 'USER_EXISTS')

    def test_update_user_partial(self):
        """Не переданные поля не меняются"""
        user = self.service.update_user(self.user1.id, is_active=False)

        self.assertFalse(user.is_active)
        self.assertEqual(user.name, "Alice")

        # Проверяем что данные сохранились в БД
        user_from_db = User.objects.get(id=self.user1.id)
        self.assertFalse(user_from_db.is_active)
        self.assertEqual(user_from_db.name, "Alice")

    def test_update_user_name(self):
        user = self.service.update_user(self.user1.id, name="Alice Smith")

        self.assertEqual(user.name, "Alice Smith")
        self.assertTrue(user.is_active)
        self.assertEqual(user.teams, [self.team])

    def test_update_user_not_found(self):
        """Тест изменения несуществующего пользователя"""
        with self.assertRaises(NotFound):
            self.service.update_user(999999, is_active=True)

    def test_list_users_filters(self):
        User.objects.create(username="eve", name="Eve", is_active=False, team=self.team)
        User.objects.create(username="frank", name="Frank")

        self.assertEqual(len(self.service.list_users()), 4)
        self.assertEqual(len(self.service.list_users(team_id=self.team.id)), 3)
        self.assertEqual(
            [user.username for user in self.service.list_users(team_id=self.team.id, is_active=True)],
            ["alice", "bob"],
        )

    def test_get_user_review_assignments_success(self):
        """Тест успешного получения PR пользователя как ревьювера"""
        assigned_prs = self.service.get_user_review_assignments(self.user2.id)

        self.assertEqual(len(assigned_prs), 1)
        self.assertEqual(assigned_prs[0].id, self.pr.id)
        self.assertEqual(assigned_prs[0].author, self.user1)

    def test_get_user_review_assignments_empty(self):
        """Тест получения PR когда пользователь не ревьювер"""
        assigned_prs = self.service.get_user_review_assignments(self.user1.id)

        self.assertEqual(len(assigned_prs), 0)

    def test_get_user_review_assignments_not_found(self):
        """Тест получения PR несуществующего пользователя"""
        with self.assertRaises(NotFound):
            self.service.get_user_review_assignments(999999)
