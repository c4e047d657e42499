from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='LegalDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField()),
                ('title', models.CharField(max_length=255)),
                ('content', models.TextField()),
                ('is_required', models.BooleanField(default=True)),
                ('version', models.CharField(default='1.0', max_length=20)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('active', 'Active'), ('archived', 'Archived')], default='active', max_length=20)),
                ('position', models.PositiveIntegerField(default=0, help_text='Signing order; revisions keep the position of the version they replace')),
                ('content_hash', models.CharField(editable=False, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'legal_documents',
                'ordering': ['position', 'created_at', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='legaldocument',
            constraint=models.UniqueConstraint(fields=('code', 'version'), name='unique_legal_document_version'),
        ),
        migrations.CreateModel(
            name='Signature',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('signature_data', models.JSONField(blank=True, default=dict)),
                ('signature_hash', models.CharField(editable=False, max_length=64)),
                ('document_version', models.CharField(max_length=20)),
                ('document_content_hash', models.CharField(max_length=64)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, default='', max_length=500)),
                ('signed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='signatures', to='domain.legaldocument')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='legal_signatures', to='auth.User')),
            ],
            options={
                'db_table': 'legal_signatures',
                'ordering': ['signed_at', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='signature',
            constraint=models.UniqueConstraint(fields=('document', 'user'), name='unique_signature_per_document_user'),
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('document_signed', 'Document signed'), ('reminder_sent', 'Reminder sent'), ('documents_completed', 'All documents accepted')], max_length=50)),
                ('category', models.CharField(blank=True, choices=[('sign', 'Sign'), ('notify', 'Notify'), ('complete', 'Complete')], max_length=20)),
                ('severity', models.CharField(blank=True, choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], max_length=20)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, default='', max_length=500)),
                ('audit_hash', models.CharField(editable=False, max_length=64)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='auth.User')),
                ('document', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='audit_events', to='domain.legaldocument')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='legal_audit_events', to='auth.User')),
            ],
            options={
                'db_table': 'legal_audit_events',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.AddIndex(
            model_name='auditevent',
            index=models.Index(fields=['user', 'action'], name='legal_audit_user_action_idx'),
        ),
    ]
