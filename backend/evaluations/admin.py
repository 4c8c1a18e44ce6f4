from django.contrib import admin

from .models import Question, SelfComment, TeacherAnswer


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('id', 'department', 'term', 'year', 'order', 'type', 'is_active', 'is_published')
    list_filter = ('department', 'term', 'year', 'type', 'is_active', 'is_published')
    search_fields = ('question',)
    ordering = ('department', 'year', 'term', 'order')


@admin.register(TeacherAnswer)
class TeacherAnswerAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'question', 'term', 'year', 'updated_at')
    list_filter = ('term', 'year')
    search_fields = ('teacher__username',)
    raw_id_fields = ('teacher', 'question')


@admin.register(SelfComment)
class SelfCommentAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'term', 'year', 'created_at')
    list_filter = ('term', 'year')
    search_fields = ('teacher__username', 'comment')
