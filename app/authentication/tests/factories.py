"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory, TutorFactory

    # Student with a generated name
    user = UserFactory()

    # Tutor with a specific name
    tutor = TutorFactory(first_name="Alice", last_name="Martin")
"""

import factory

from authentication.models import User, UserRole


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active students by default.

    Examples:
        user = UserFactory()
        staff = UserFactory(is_staff=True)
        inactive = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.STUDENT
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class TutorFactory(UserFactory):
    """Factory for tutors."""

    role = UserRole.TUTOR
