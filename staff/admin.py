# staff/admin.py

from django.contrib import admin
from .models import StaffMember


@admin.register(StaffMember)
class StaffMemberAdmin(admin.ModelAdmin):
    list_display = ('name', 'username', 'role', 'location', 'permission_groups', 'is_active', 'date_joined')
    list_filter = ('role', 'location', 'is_active')
    list_editable = ('is_active',)
    list_select_related = ('user', 'location')
    search_fields = ('user__username', 'user__first_name', 'user__last_name', 'user__email', 'contact_number')
    raw_id_fields = ('user',)
    fieldsets = (
        (None, {'fields': ('user', 'role', 'location', 'is_active')}),
        ('Contact', {'fields': ('contact_number', 'date_joined')}),
    )
    actions = ['resync_permission_groups']

    @admin.display(description='Username', ordering='user__username')
    def username(self, obj):
        return obj.user.get_username()

    @admin.display(description='Permission Groups')
    def permission_groups(self, obj):
        return ", ".join(obj.user.groups.values_list('name', flat=True)) or "None"

    @admin.action(description='Re-sync permission groups with role')
    def resync_permission_groups(self, request, queryset):
        for member in queryset.select_related('user'):
            member.sync_groups()
        self.message_user(request, f"Permission groups synced for {queryset.count()} staff member(s).")
