from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Administrator'
    TEACHER = 'TEACHER', 'Teacher'
    HOD = 'HOD', 'Head of Department'
    ASST_DEAN = 'ASST_DEAN', 'Assistant Dean'
    DEAN = 'DEAN', 'Dean'


class User(AbstractUser):
    """
    Base user model.
    Every actor of the evaluation workflow is a user with exactly one role.
    Teachers and HODs belong to a department; deans and admins usually do not.
    """
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.TEACHER, db_index=True)
    department = models.ForeignKey(
        'academics.Department',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='members',
    )

    def __str__(self):
        return self.username

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username
