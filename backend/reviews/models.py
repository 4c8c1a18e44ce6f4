from django.conf import settings
from django.db import models

from terms.models import TermStatus


class ReviewStatus(models.TextChoices):
    PROMOTED = 'PROMOTED', 'Promoted'
    ON_HOLD = 'ON_HOLD', 'On hold'
    NEEDS_IMPROVEMENT = 'NEEDS_IMPROVEMENT', 'Needs improvement'


class ReviewRecord(models.Model):
    """Fields shared by every review row.

    ``version`` starts at 1 and is bumped on every write; writers update a row
    only if the version they read is still current.
    """
    term = models.CharField(max_length=8, choices=TermStatus.choices)
    year = models.PositiveIntegerField()
    reviewer = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    submitted = models.BooleanField(default=False)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class HodReview(ReviewRecord):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='hod_reviews_received')
    comments = models.TextField(blank=True)
    # {"rubric": {...}, "categorySubtotals": {...}, "totalScore": n}
    scores = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name = 'HOD Review'
        verbose_name_plural = 'HOD Reviews'
        constraints = [
            models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_hod_review'),
        ]

    def __str__(self):
        return f"HOD review of {self.teacher_id} ({self.term} {self.year})"


class AsstReview(ReviewRecord):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='asst_reviews_received')
    comments = models.TextField(blank=True)
    scores = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name = 'Assistant Dean Review'
        verbose_name_plural = 'Assistant Dean Reviews'
        constraints = [
            models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_asst_review'),
        ]

    def __str__(self):
        return f"Asst Dean review of {self.teacher_id} ({self.term} {self.year})"


class FinalReview(ReviewRecord):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='final_reviews_received')
    status = models.CharField(max_length=24, choices=ReviewStatus.choices, null=True, blank=True)
    final_score = models.FloatField(null=True, blank=True)
    final_comment = models.TextField(blank=True)

    class Meta:
        verbose_name = 'Final Review'
        verbose_name_plural = 'Final Reviews'
        constraints = [
            models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_final_review'),
        ]

    def __str__(self):
        return f"Final review of {self.teacher_id} ({self.term} {self.year})"


class HodPerformanceReview(ReviewRecord):
    class ReviewerRole(models.TextChoices):
        ASST_DEAN = 'ASST_DEAN', 'Assistant Dean'
        DEAN = 'DEAN', 'Dean'

    hod = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='hod_performance_reviews')
    # stored on the row; never derived from the reviewer's current role
    reviewer_role = models.CharField(max_length=16, choices=ReviewerRole.choices)
    comments = models.TextField(blank=True)
    scores = models.JSONField(default=dict, blank=True)
    total_score = models.FloatField(null=True, blank=True)
    status = models.CharField(max_length=24, choices=ReviewStatus.choices, null=True, blank=True)

    class Meta:
        verbose_name = 'HOD Performance Review'
        verbose_name_plural = 'HOD Performance Reviews'
        constraints = [
            models.UniqueConstraint(fields=('hod', 'term', 'year', 'reviewer_role'), name='uniq_hod_performance_review'),
        ]

    def __str__(self):
        return f"{self.reviewer_role} review of HOD {self.hod_id} ({self.term} {self.year})"
