from django.db import models


class TermStatus(models.TextChoices):
    START = 'START', 'Start of year'
    END = 'END', 'End of year'


class Visibility(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PUBLISHED = 'PUBLISHED', 'Published'
    COMPLETE = 'COMPLETE', 'Complete'


class Term(models.Model):
    name = models.CharField(max_length=150)
    year = models.PositiveIntegerField(db_index=True)
    start_date = models.DateTimeField()
    # submission deadline
    end_date = models.DateTimeField()
    status = models.CharField(max_length=8, choices=TermStatus.choices)
    departments = models.ManyToManyField('academics.Department', related_name='terms', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-year', 'status', 'name')

    def __str__(self):
        return f"{self.name} ({self.status} {self.year})"


class TermState(models.Model):
    """Per-department, per-year activation and visibility state."""

    department = models.ForeignKey('academics.Department', on_delete=models.CASCADE, related_name='term_states')
    year = models.PositiveIntegerField()
    active_term = models.CharField(max_length=8, choices=TermStatus.choices, default=TermStatus.START)
    visibility = models.CharField(max_length=16, choices=Visibility.choices, default=Visibility.DRAFT)
    start_term_visibility = models.CharField(max_length=16, choices=Visibility.choices, default=Visibility.DRAFT)
    end_term_visibility = models.CharField(max_length=16, choices=Visibility.choices, default=Visibility.DRAFT)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Term State'
        verbose_name_plural = 'Term States'
        constraints = [
            models.UniqueConstraint(fields=('department', 'year'), name='uniq_termstate_department_year'),
        ]

    def __str__(self):
        return f"{self.department_id}/{self.year}: {self.active_term} ({self.visibility})"

    @staticmethod
    def flag_field(term: str) -> str:
        return 'start_term_visibility' if term == TermStatus.START else 'end_term_visibility'

    def visibility_for(self, term: str) -> str:
        return getattr(self, self.flag_field(term))
