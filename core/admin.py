from django.contrib import admin
from .models import Club, DomainActivity


@admin.register(Club)
class ClubAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'category', 'admin_user', 'is_active', 'created_at')
    list_filter = ('is_active', 'category')
    search_fields = ('name', 'slug', 'admin_user__username')
    prepopulated_fields = {'slug': ('name',)}


@admin.register(DomainActivity)
class DomainActivityAdmin(admin.ModelAdmin):
    list_display = ('verb', 'actor', 'club', 'timestamp')
    list_filter = ('verb',)
    search_fields = ('verb', 'actor__username')
    readonly_fields = ('actor', 'verb', 'content_type', 'object_id', 'club', 'metadata', 'timestamp')
