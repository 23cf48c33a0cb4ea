from django.contrib import admin

from .models import Challenge, ChallengeAnswerKey


@admin.register(Challenge)
class ChallengeAdmin(admin.ModelAdmin):
    list_display = ("title", "difficulty", "challenge_type", "is_ai_generated", "job_post_id", "created_at")
    list_filter = ("difficulty", "challenge_type", "is_ai_generated")
    search_fields = ("title", "content_hash", "job_post_id")


admin.site.register(ChallengeAnswerKey)
