import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Folder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner_id', models.CharField(db_index=True, max_length=64)),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='files.folder')),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
                'ordering': ['name', 'id'],
                'indexes': [models.Index(fields=['owner_id', 'parent'], name='folders_owner_parent_idx')],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner_id', models.CharField(db_index=True, max_length=64)),
                ('name', models.CharField(max_length=255)),
                ('storage_path', models.CharField(help_text='Key in blob store: {owner_id}/{random id}.{ext}', max_length=1024, unique=True)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('content_type', models.CharField(help_text='MIME type sent with the upload', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('folder', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='files', to='files.folder')),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at', 'id'],
                'indexes': [
                    models.Index(fields=['owner_id', 'folder'], name='files_owner_folder_idx'),
                    models.Index(fields=['owner_id', '-created_at'], name='files_owner_recent_idx'),
                ],
            },
        ),
    ]
