import pytest
from django.contrib.auth.models import User
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient
from apps.domain.models import LegalDocument


@pytest.fixture
def user():
    return User.objects.create_user(
        username='testuser',
        email='test@example.com',
        password='testpass123',
        first_name='Test',
        last_name='User'
    )


@pytest.fixture
def other_user():
    return User.objects.create_user(
        username='otheruser',
        email='other@example.com',
        password='testpass123'
    )


@pytest.fixture
def admin_user():
    return User.objects.create_superuser(
        username='admin',
        email='admin@example.com',
        password='adminpass123'
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_with_token(user):
    token = Token.objects.create(user=user)
    return user, token


@pytest.fixture
def auth_client(api_client, user_with_token):
    user, token = user_with_token
    api_client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
    return api_client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    token = Token.objects.create(user=admin_user)
    client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
    return client


@pytest.fixture
def required_documents():
    # Seeded by migration: terms, privacy, nda, contributor
    return list(LegalDocument.objects.required())


@pytest.fixture
def legal_document():
    return LegalDocument.objects.create(
        code='cookie-policy',
        title='Cookie Policy',
        content='# Cookie Policy\n\nWe use **essential** cookies only.',
        version='1.0',
        position=10
    )
