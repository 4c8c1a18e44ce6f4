from django.contrib import admin

from .models import AsstReview, FinalReview, HodPerformanceReview, HodReview


class ReviewAdminBase(admin.ModelAdmin):
    list_filter = ('term', 'year', 'submitted')
    readonly_fields = ('version', 'created_at', 'updated_at')
    raw_id_fields = ('reviewer',)


@admin.register(HodReview)
class HodReviewAdmin(ReviewAdminBase):
    list_display = ('teacher', 'term', 'year', 'reviewer', 'submitted', 'version', 'updated_at')
    search_fields = ('teacher__username',)


@admin.register(AsstReview)
class AsstReviewAdmin(ReviewAdminBase):
    list_display = ('teacher', 'term', 'year', 'reviewer', 'submitted', 'version', 'updated_at')
    search_fields = ('teacher__username',)


@admin.register(FinalReview)
class FinalReviewAdmin(ReviewAdminBase):
    list_display = ('teacher', 'term', 'year', 'status', 'final_score', 'submitted', 'version')
    list_filter = ('term', 'year', 'status', 'submitted')
    search_fields = ('teacher__username',)


@admin.register(HodPerformanceReview)
class HodPerformanceReviewAdmin(ReviewAdminBase):
    list_display = ('hod', 'reviewer_role', 'term', 'year', 'total_score', 'status', 'submitted', 'version')
    list_filter = ('reviewer_role', 'term', 'year', 'status', 'submitted')
    search_fields = ('hod__username',)
