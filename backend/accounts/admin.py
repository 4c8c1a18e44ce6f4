from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'email', 'first_name', 'last_name', 'role', 'department', 'is_active')
    list_filter = ('role', 'department', 'is_active', 'is_staff')
    search_fields = ('username', 'email', 'first_name', 'last_name')
    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Evaluation workflow', {'fields': ('role', 'department')}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ('Evaluation workflow', {'fields': ('role', 'department')}),
    )
