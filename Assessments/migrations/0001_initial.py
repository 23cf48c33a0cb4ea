import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Challenge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField()),
                (
                    "difficulty",
                    models.CharField(
                        choices=[
                            ("beginner", "beginner"),
                            ("intermediate", "intermediate"),
                            ("advanced", "advanced"),
                            ("expert", "expert"),
                        ],
                        default="intermediate",
                        max_length=32,
                    ),
                ),
                (
                    "challenge_type",
                    models.CharField(
                        choices=[
                            ("scenario", "scenario"),
                            ("analytical", "analytical"),
                            ("technical", "technical"),
                            ("case_study", "case_study"),
                            ("problem_solving", "problem_solving"),
                        ],
                        default="scenario",
                        max_length=32,
                    ),
                ),
                ("skills", models.JSONField(blank=True, default=list)),
                ("estimated_time_minutes", models.IntegerField(default=30)),
                ("evaluation_criteria", models.JSONField(blank=True, default=list)),
                ("content_hash", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("is_ai_generated", models.BooleanField(default=False)),
                ("created_by_admin", models.BooleanField(default=False)),
                ("job_post_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("generated_for_job", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="ChallengeAnswerKey",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("correct_answer", models.TextField()),
                ("explanation", models.TextField(blank=True, default="")),
                ("evaluation_rubric", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "challenge",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="answer_key",
                        to="Assessments.challenge",
                    ),
                ),
            ],
        ),
    ]
