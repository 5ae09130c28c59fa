from django.test import TestCase
from django.contrib.auth import get_user_model

User = get_user_model()


class UserManagerTests(TestCase):
    """Tests for the custom UserManager."""

    def test_create_user(self):
        """Test creating a regular user with email."""
        user = User.objects.create_user(
            email='test@example.com',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)
        self.assertTrue(user.is_active)

    def test_create_user_without_email_raises_error(self):
        """Test that creating a user without email raises ValueError."""
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_user_normalizes_email(self):
        """Test that email is normalized (lowercase domain)."""
        user = User.objects.create_user(
            email='test@EXAMPLE.COM',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')

    def test_create_superuser(self):
        """Test creating a superuser."""
        user = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpass123'
        )
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.role_label, 'Super Admin')

    def test_create_superuser_without_is_staff_raises_error(self):
        """Test that superuser must have is_staff=True."""
        with self.assertRaises(ValueError):
            User.objects.create_superuser(
                email='admin@example.com',
                password='adminpass123',
                is_staff=False
            )

    def test_create_school_admin(self):
        user = User.objects.create_school_admin(
            email='principal@dojo.com',
            password='schoolpass123'
        )
        self.assertTrue(user.is_school_admin)
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_instructor)
        self.assertEqual(user.role_label, 'School Admin')

    def test_create_instructor(self):
        user = User.objects.create_instructor(
            email='sabeom@dojo.com',
            password='instructor123'
        )
        self.assertTrue(user.is_instructor)
        self.assertFalse(user.is_school_admin)
        self.assertEqual(user.role_label, 'Instructor')


class WaiverAuthorizationTests(TestCase):
    """Only administrators can waive exam fees."""

    def test_school_admin_can_authorize(self):
        admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        self.assertTrue(admin.can_authorize_waivers)

    def test_superuser_can_authorize(self):
        root = User.objects.create_superuser(email='root@dojo.com', password='x')
        self.assertTrue(root.can_authorize_waivers)

    def test_instructor_cannot_authorize(self):
        instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')
        self.assertFalse(instructor.can_authorize_waivers)

    def test_inactive_admin_cannot_authorize(self):
        admin = User.objects.create_school_admin(
            email='former@dojo.com', password='x', is_active=False
        )
        self.assertFalse(admin.can_authorize_waivers)
