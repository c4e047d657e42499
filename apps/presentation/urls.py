from django.urls import path
from . import views

urlpatterns = [
    path('api-token-auth/', views.custom_obtain_auth_token, name='api-token-auth'),
    path('auth/register/', views.register, name='register'),
    path('legal/required/', views.required_documents, name='legal-required'),
    path('legal/sign/', views.sign_document, name='legal-sign'),
    path('legal/status/', views.acceptance_status, name='legal-status'),
    path('legal/complete/', views.complete_acceptance, name='legal-complete'),
    path('legal/history/', views.acceptance_history, name='legal-history'),
    path('legal/signatures/<int:signature_id>/verify/', views.verify_signature, name='legal-signature-verify'),
    path('legal/users/<int:user_id>/remind/', views.send_reminder, name='legal-remind'),
    path('legal/documents/<int:document_id>/history/', views.document_history, name='legal-document-history'),
    path('legal/audit/statistics/', views.audit_statistics, name='legal-audit-statistics'),
    path('legal/audit/tampered/', views.audit_tampered, name='legal-audit-tampered'),
]
