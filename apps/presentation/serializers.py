from django.contrib.auth.models import User
from rest_framework import serializers
from rest_framework.authtoken.models import Token
from apps.domain.models import AuditEvent, LegalDocument, Signature


class RegisterSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=150, help_text='First name')
    lastName = serializers.CharField(max_length=150, help_text='Last name')
    email = serializers.EmailField(help_text='Email address, also used as the username')
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={'input_type': 'password'},
        help_text='Password (minimum 8 characters)'
    )
    company = serializers.CharField(
        max_length=200,
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text='Company name (optional)'
    )

    def validate_firstName(self, value):
        if not value.strip():
            raise serializers.ValidationError('First name cannot be empty')
        return value.strip()

    def validate_lastName(self, value):
        if not value.strip():
            raise serializers.ValidationError('Last name cannot be empty')
        return value.strip()

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists() or User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists')
        return value

    def create(self, validated_data):
        user = User.objects.create_user(
            username=validated_data['email'],
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data['firstName'],
            last_name=validated_data['lastName'],
        )
        Token.objects.create(user=user)
        return user


class RequiredDocumentSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='document.id', read_only=True)
    code = serializers.CharField(source='document.code', read_only=True)
    title = serializers.CharField(source='document.title', read_only=True)
    content = serializers.CharField(source='document.content', read_only=True, help_text='Markdown content')
    version = serializers.CharField(source='document.version', read_only=True)
    isRequired = serializers.BooleanField(source='document.is_required', read_only=True)
    isSigned = serializers.BooleanField(source='is_signed', read_only=True)
    signedAt = serializers.DateTimeField(source='signed_at', read_only=True, allow_null=True)


class SignatureDataSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=300, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    ipAddress = serializers.CharField(max_length=45, required=False, allow_blank=True, allow_null=True)
    userAgent = serializers.CharField(max_length=500, required=False, allow_blank=True)
    signedAt = serializers.CharField(max_length=64, required=False, allow_blank=True, help_text='Client timestamp, ISO 8601')


class SignRequestSerializer(serializers.Serializer):
    documentId = serializers.IntegerField(min_value=1, help_text='ID of the legal document being accepted')
    signatureData = SignatureDataSerializer(required=False, default=dict)


class SignatureReceiptSerializer(serializers.ModelSerializer):
    signatureId = serializers.IntegerField(source='id', read_only=True)
    documentId = serializers.IntegerField(source='document_id', read_only=True)
    documentVersion = serializers.CharField(source='document_version', read_only=True)
    signatureHash = serializers.CharField(source='signature_hash', read_only=True)
    signedAt = serializers.DateTimeField(source='signed_at', read_only=True)

    class Meta:
        model = Signature
        fields = ['signatureId', 'documentId', 'documentVersion', 'signatureHash', 'signedAt']


class SignatureHistorySerializer(serializers.ModelSerializer):
    documentId = serializers.IntegerField(source='document_id', read_only=True)
    documentCode = serializers.CharField(source='document.code', read_only=True)
    documentTitle = serializers.CharField(source='document.title', read_only=True)
    documentVersion = serializers.CharField(source='document_version', read_only=True)
    signatureHash = serializers.CharField(source='signature_hash', read_only=True)
    ipAddress = serializers.IPAddressField(source='ip_address', read_only=True, allow_null=True)
    signedAt = serializers.DateTimeField(source='signed_at', read_only=True)
    isValid = serializers.SerializerMethodField()

    class Meta:
        model = Signature
        fields = [
            'id', 'documentId', 'documentCode', 'documentTitle', 'documentVersion',
            'signatureHash', 'ipAddress', 'signedAt', 'isValid'
        ]

    def get_isValid(self, obj) -> bool:
        return obj.verify() and obj.matches_document()


class AuditEventSerializer(serializers.ModelSerializer):
    documentId = serializers.IntegerField(source='document_id', read_only=True, allow_null=True)
    actorId = serializers.IntegerField(source='actor_id', read_only=True, allow_null=True)
    auditHash = serializers.CharField(source='audit_hash', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditEvent
        fields = ['id', 'action', 'category', 'severity', 'documentId', 'actorId', 'details', 'auditHash', 'createdAt']


class AcceptanceStatusSerializer(serializers.Serializer):
    totalDocuments = serializers.IntegerField(source='total_documents')
    signedDocuments = serializers.IntegerField(source='signed_documents')
    completionPercentage = serializers.IntegerField(source='completion_percentage', help_text='Rounded half up')
    isComplete = serializers.BooleanField(source='is_complete')
    lastUpdated = serializers.DateTimeField(source='last_updated')


class CompletionSerializer(serializers.ModelSerializer):
    auditEventId = serializers.IntegerField(source='id', read_only=True)
    completedAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditEvent
        fields = ['auditEventId', 'completedAt']


class LegalDocumentSummarySerializer(serializers.ModelSerializer):
    isRequired = serializers.BooleanField(source='is_required', read_only=True)
    contentHash = serializers.CharField(source='content_hash', read_only=True)
    signatureCount = serializers.SerializerMethodField()

    class Meta:
        model = LegalDocument
        fields = ['id', 'code', 'title', 'version', 'status', 'isRequired', 'position', 'contentHash', 'signatureCount']

    def get_signatureCount(self, obj) -> int:
        return obj.signatures.count()


class SignatureVerificationSerializer(serializers.ModelSerializer):
    signatureId = serializers.IntegerField(source='id', read_only=True)
    documentId = serializers.IntegerField(source='document_id', read_only=True)
    signatureHash = serializers.CharField(source='signature_hash', read_only=True)
    isValid = serializers.SerializerMethodField()
    matchesDocument = serializers.SerializerMethodField()

    class Meta:
        model = Signature
        fields = ['signatureId', 'documentId', 'signatureHash', 'isValid', 'matchesDocument']

    def get_isValid(self, obj) -> bool:
        return obj.verify()

    def get_matchesDocument(self, obj) -> bool:
        return obj.matches_document()
