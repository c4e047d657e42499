from django.contrib import admin
from .models import AuditEvent, LegalDocument, Signature


@admin.register(LegalDocument)
class LegalDocumentAdmin(admin.ModelAdmin):
    list_display = ['title', 'code', 'version', 'status', 'is_required', 'position', 'updated_at']
    list_filter = ['status', 'is_required', 'code']
    search_fields = ['title', 'code', 'content']
    readonly_fields = ['content_hash', 'created_at', 'updated_at']
    fieldsets = (
        ('Document', {
            'fields': ('code', 'title', 'version', 'content')
        }),
        ('Publication', {
            'fields': ('status', 'is_required', 'position', 'content_hash')
        }),
        ('Dates', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        # Signed content is frozen; new text goes out as a new version
        if obj is not None and obj.signatures.exists():
            fields += ['code', 'version', 'content']
        return fields


class AppendOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Signature)
class SignatureAdmin(AppendOnlyAdmin):
    list_display = ['user', 'document', 'document_version', 'signed_at', 'ip_address']
    list_filter = ['document', 'signed_at']
    search_fields = ['user__username', 'user__email', 'signature_hash']
    readonly_fields = [
        'document', 'user', 'signature_data', 'signature_hash', 'document_version',
        'document_content_hash', 'ip_address', 'user_agent', 'signed_at'
    ]


@admin.register(AuditEvent)
class AuditEventAdmin(AppendOnlyAdmin):
    list_display = ['action', 'user', 'document', 'severity', 'created_at']
    list_filter = ['action', 'category', 'severity', 'created_at']
    search_fields = ['user__username', 'user__email', 'audit_hash']
    readonly_fields = [
        'user', 'actor', 'document', 'action', 'category', 'severity', 'details',
        'ip_address', 'user_agent', 'audit_hash', 'created_at'
    ]
