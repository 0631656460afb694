# Generated manually for standalone django-content-fields package

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Content",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "slug",
                    models.SlugField(allow_unicode=True, max_length=200),
                ),
                ("title", models.CharField(max_length=255)),
                ("content_type", models.CharField(max_length=255)),
                ("json_content", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("published", "Published")],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(blank=True, null=True)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "verbose_name": "content",
                "verbose_name_plural": "contents",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="content",
            index=models.Index(
                fields=["content_type", "slug"], name="content_type_slug_idx"
            ),
        ),
        migrations.AddIndex(
            model_name="content",
            index=models.Index(
                fields=["content_type", "created_at"], name="content_type_created_idx"
            ),
        ),
    ]
