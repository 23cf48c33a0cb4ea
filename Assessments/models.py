from django.db import models

from Assessments.generation.types import CHALLENGE_TYPES, DIFFICULTIES


class Challenge(models.Model):
    DIFFICULTY_CHOICES = [(d, d) for d in DIFFICULTIES]
    CHALLENGE_TYPE_CHOICES = [(t, t) for t in CHALLENGE_TYPES]

    title = models.CharField(max_length=255)
    description = models.TextField()
    difficulty = models.CharField(max_length=32, choices=DIFFICULTY_CHOICES, default="intermediate")
    challenge_type = models.CharField(max_length=32, choices=CHALLENGE_TYPE_CHOICES, default="scenario")
    skills = models.JSONField(default=list, blank=True)
    estimated_time_minutes = models.IntegerField(default=30)
    evaluation_criteria = models.JSONField(default=list, blank=True)
    # fingerprint of title/description/correct answer, used to reject duplicates
    content_hash = models.CharField(max_length=64, unique=True, null=True, blank=True)
    is_ai_generated = models.BooleanField(default=False)
    created_by_admin = models.BooleanField(default=False)
    job_post_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    generated_for_job = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title


class ChallengeAnswerKey(models.Model):
    challenge = models.OneToOneField(Challenge, related_name="answer_key", on_delete=models.CASCADE)
    correct_answer = models.TextField()
    explanation = models.TextField(blank=True, default="")
    evaluation_rubric = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Answer key for {self.challenge.title}"
