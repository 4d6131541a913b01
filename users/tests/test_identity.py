from django.test import TestCase

from events.exceptions import AlreadyRegistered, ValidationFailed
from users import identity
from users.models import User


class RegisterAccountTests(TestCase):
    def test_guest_accounts_may_share_an_email(self):
        first = identity.register_account("Asha", "Guest@Example.com ", "alpha123")
        second = identity.register_account("Asha Two", "guest@example.com", "beta4567")

        self.assertNotEqual(first.pk, second.pk)
        self.assertEqual(first.email, "guest@example.com")
        self.assertEqual(User.objects.filter(email="guest@example.com").count(), 2)
        self.assertEqual(first.role, User.ROLE_PARTICIPANT)

    def test_guest_password_collision_rejected(self):
        identity.register_account("Asha", "guest@example.com", "alpha123")

        with self.assertRaises(AlreadyRegistered) as ctx:
            identity.register_account("Imposter", "guest@example.com", "alpha123")
        self.assertEqual(ctx.exception.code, "credential_in_use")

    def test_iiit_email_is_unique(self):
        identity.register_account("Ravi", "ravi@students.iiit.ac.in", "secret12", is_iiit=True)

        with self.assertRaises(AlreadyRegistered) as ctx:
            identity.register_account("Ravi", "ravi@students.iiit.ac.in", "other123", is_iiit=True)
        self.assertEqual(ctx.exception.code, "email_taken")

    def test_guest_cannot_take_an_iiit_email(self):
        student = identity.register_account("Ravi", "ravi@students.iiit.ac.in", "secret12", is_iiit=True)

        with self.assertRaises(AlreadyRegistered) as ctx:
            identity.register_account("Guest", "Ravi@students.iiit.ac.in", "guest-pw1")
        self.assertEqual(ctx.exception.code, "email_taken")
        self.assertEqual(User.objects.filter(email="ravi@students.iiit.ac.in").count(), 1)
        self.assertEqual(identity.resolve("ravi@students.iiit.ac.in", "secret12"), student)

    def test_iiit_requires_iiit_domain(self):
        with self.assertRaises(ValidationFailed) as ctx:
            identity.register_account("Ravi", "ravi@gmail.com", "secret12", is_iiit=True)
        self.assertEqual(ctx.exception.code, "invalid_email_domain")

    def test_short_password(self):
        with self.assertRaises(ValidationFailed) as ctx:
            identity.register_account("Ravi", "ravi@example.com", "123")
        self.assertEqual(ctx.exception.code, "weak_password")

    def test_missing_fields(self):
        with self.assertRaises(ValidationFailed):
            identity.register_account("", "ravi@example.com", "secret12")


class ResolveTests(TestCase):
    def setUp(self):
        self.first = identity.register_account("One", "shared@example.com", "password-one")
        self.second = identity.register_account("Two", "shared@example.com", "password-two")

    def test_password_picks_the_account(self):
        self.assertEqual(identity.resolve("shared@example.com", "password-one"), self.first)
        self.assertEqual(identity.resolve(" SHARED@example.com", "password-two"), self.second)

    def test_unknown_email_and_wrong_password_look_the_same(self):
        self.assertIsNone(identity.resolve("shared@example.com", "nope-nope"))
        self.assertIsNone(identity.resolve("nobody@example.com", "password-one"))
        self.assertIsNone(identity.resolve("", ""))

    def test_iiit_account_is_checked_alone(self):
        student = identity.register_account("Stu", "stu@iiit.ac.in", "student-pw", is_iiit=True)

        self.assertEqual(identity.resolve("stu@iiit.ac.in", "student-pw"), student)
        self.assertIsNone(identity.resolve("stu@iiit.ac.in", "wrong-pw"))

    def test_inactive_accounts_are_skipped(self):
        User.objects.filter(pk=self.first.pk).update(is_active=False)
        self.assertIsNone(identity.resolve("shared@example.com", "password-one"))


class ChangePasswordTests(TestCase):
    def setUp(self):
        self.first = identity.register_account("One", "shared@example.com", "password-one")
        self.second = identity.register_account("Two", "shared@example.com", "password-two")

    def test_new_password_resolves_to_the_same_account(self):
        identity.change_password(self.first, "password-one", "password-new")

        self.assertEqual(identity.resolve("shared@example.com", "password-new"), self.first)
        self.assertIsNone(identity.resolve("shared@example.com", "password-one"))
        self.assertEqual(identity.resolve("shared@example.com", "password-two"), self.second)

    def test_cannot_take_a_sibling_password(self):
        with self.assertRaises(AlreadyRegistered) as ctx:
            identity.change_password(self.first, "password-one", "password-two")
        self.assertEqual(ctx.exception.code, "credential_in_use")

        self.first.refresh_from_db()
        self.assertTrue(self.first.check_password("password-one"))

    def test_own_password_is_not_a_collision(self):
        identity.change_password(self.first, "password-one", "password-one")
        self.assertEqual(identity.resolve("shared@example.com", "password-one"), self.first)

    def test_wrong_current_password(self):
        with self.assertRaises(ValidationFailed) as ctx:
            identity.change_password(self.first, "password-two", "password-new")
        self.assertEqual(ctx.exception.code, "invalid_password")

    def test_short_new_password(self):
        with self.assertRaises(ValidationFailed) as ctx:
            identity.change_password(self.first, "password-one", "abc")
        self.assertEqual(ctx.exception.code, "weak_password")
