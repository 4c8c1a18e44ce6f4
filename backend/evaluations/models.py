from django.conf import settings
from django.db import models

from terms.models import TermStatus


class Question(models.Model):
    class QuestionType(models.TextChoices):
        TEXT = 'TEXT', 'Short text'
        TEXTAREA = 'TEXTAREA', 'Long text'
        MCQ = 'MCQ', 'Single choice'
        CHECKBOX = 'CHECKBOX', 'Multiple choice'

    CHOICE_TYPES = (QuestionType.MCQ, QuestionType.CHECKBOX)

    department = models.ForeignKey('academics.Department', on_delete=models.CASCADE, related_name='questions')
    term = models.CharField(max_length=8, choices=TermStatus.choices)
    year = models.PositiveIntegerField()
    question = models.TextField()
    type = models.CharField(max_length=16, choices=QuestionType.choices, default=QuestionType.TEXT)
    # index-aligned with option_scores
    options = models.JSONField(default=list, blank=True)
    option_scores = models.JSONField(default=list, blank=True)
    order = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True)
    is_published = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='authored_questions',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('department', 'year', 'term', 'order')
        constraints = [
            models.UniqueConstraint(fields=('department', 'term', 'year', 'order'), name='uniq_question_slot'),
        ]

    def __str__(self):
        return f"{self.term} {self.year} #{self.order}: {self.question[:50]}"

    @property
    def is_choice(self) -> bool:
        return self.type in self.CHOICE_TYPES


class TeacherAnswer(models.Model):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='evaluation_answers')
    question = models.ForeignKey(Question, on_delete=models.PROTECT, related_name='answers')
    term = models.CharField(max_length=8, choices=TermStatus.choices)
    year = models.PositiveIntegerField()
    # str for TEXT/TEXTAREA/MCQ, list of str for CHECKBOX
    answer = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=('teacher', 'question', 'term', 'year'), name='uniq_teacher_answer'),
        ]

    def __str__(self):
        return f"{self.teacher_id} -> Q{self.question_id} ({self.term} {self.year})"


class SelfComment(models.Model):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='self_comments')
    term = models.CharField(max_length=8, choices=TermStatus.choices)
    year = models.PositiveIntegerField()
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_self_comment'),
        ]

    def __str__(self):
        return f"Self comment {self.teacher_id} ({self.term} {self.year})"
