from rest_framework import serializers

from Assessments.generation.types import CHALLENGE_TYPES, DIFFICULTIES
from .models import Challenge, ChallengeAnswerKey


class ChallengeAnswerKeySerializer(serializers.ModelSerializer):
    class Meta:
        model = ChallengeAnswerKey
        fields = ("id", "correct_answer", "explanation", "evaluation_rubric", "created_at")


class ChallengeSerializer(serializers.ModelSerializer):
    # write-only: stored on the answer key, never echoed in listings
    correct_answer = serializers.CharField(write_only=True, required=False, allow_blank=True)
    answer_explanation = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Challenge
        fields = "__all__"
        read_only_fields = ("content_hash", "created_at")


class ChallengeDetailSerializer(ChallengeSerializer):
    answer_key = ChallengeAnswerKeySerializer(read_only=True)


class GenerateChallengesSerializer(serializers.Serializer):
    skills = serializers.ListField(child=serializers.CharField(max_length=64), allow_empty=False)
    difficulty = serializers.ChoiceField(choices=DIFFICULTIES, default="intermediate")
    challenge_type = serializers.ChoiceField(choices=CHALLENGE_TYPES, default="scenario")
    count = serializers.IntegerField(min_value=1, max_value=20, default=1)
    job_title = serializers.CharField(required=False, allow_blank=True, default="")
    job_description = serializers.CharField(required=False, allow_blank=True, default="")
    job_post_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    persist = serializers.BooleanField(default=True)
    created_by_admin = serializers.BooleanField(default=False)

    def validate_skills(self, value):
        cleaned = [s.strip() for s in value if s and s.strip()]
        if not cleaned:
            raise serializers.ValidationError("Select at least one skill area.")
        return cleaned


class GeneratedChallengeSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    correct_answer = serializers.CharField()
    difficulty = serializers.ChoiceField(choices=DIFFICULTIES, default="intermediate")
    challenge_type = serializers.ChoiceField(choices=CHALLENGE_TYPES, default="scenario")
    skills = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    estimated_time_minutes = serializers.IntegerField(min_value=1, required=False, default=30)
    evaluation_criteria = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class SaveGeneratedChallengesSerializer(serializers.Serializer):
    job_post_id = serializers.CharField(max_length=64)
    job_title = serializers.CharField(required=False, allow_blank=True, default="")
    challenges = GeneratedChallengeSerializer(many=True, allow_empty=False)
