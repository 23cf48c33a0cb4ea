import logging
from typing import Any, Dict, List

from django.db import IntegrityError, transaction

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser

from Assessments.agents.challenge_agent import ai_generate_unique_challenges
from Assessments.generation.errors import PersistenceFailure
from Assessments.generation.fingerprint import fingerprint
from Assessments.generation.types import BatchResult, GenerationRequest
from Assessments.persistence import challenge_fields_for, store_challenge
from Assessments.utils import create_response
from .models import Challenge, ChallengeAnswerKey
from .serializers import (
    ChallengeDetailSerializer,
    ChallengeSerializer,
    GenerateChallengesSerializer,
    SaveGeneratedChallengesSerializer,
)

logger = logging.getLogger(__name__)

BLANK_ANSWER_MESSAGE = "Correct answer cannot be blank for a challenge that has an answer key."
DUPLICATE_MESSAGE = "A similar challenge already exists. Please regenerate or modify the content."
NOTHING_GENERATED_MESSAGE = "All generated challenges already exist. Please try again for unique content."


def _preview_payload(result: BatchResult, request: GenerationRequest) -> List[Dict[str, Any]]:
    out = []
    for accepted in result.accepted:
        fields = challenge_fields_for(accepted, request)
        out.append({
            "title": fields["title"],
            "description": fields["description"],
            "correct_answer": accepted.item.correct_answer,
            "difficulty": fields["difficulty"],
            "challenge_type": fields["challenge_type"],
            "skills": fields["skills"],
            "estimated_time_minutes": fields["estimated_time_minutes"],
            "evaluation_criteria": fields["evaluation_criteria"],
            "content_hash": accepted.fingerprint,
            "job_specific": request.is_job_specific,
            "generated_for_job": fields["generated_for_job"],
        })
    return out


class ChallengeViewSet(viewsets.ModelViewSet):
    queryset = Challenge.objects.all().order_by("-created_at", "-id")
    serializer_class = ChallengeSerializer

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ChallengeDetailSerializer
        return ChallengeSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        job_post_id = self.request.query_params.get("job_post_id")
        if job_post_id:
            qs = qs.filter(job_post_id=job_post_id)
        return qs

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        correct_answer = data.pop("correct_answer", "") or ""
        explanation = data.pop("answer_explanation", "") or ""

        content_hash = fingerprint(data.get("title"), data.get("description"), correct_answer)
        if Challenge.objects.filter(content_hash=content_hash).exists():
            return create_response(False, DUPLICATE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

        data["content_hash"] = content_hash
        try:
            challenge = store_challenge(data, correct_answer, explanation)
        except PersistenceFailure as e:
            # lost a race against a concurrent create with the same content
            logger.warning("Create challenge failed: %s", e)
            return create_response(False, DUPLICATE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

        return create_response(
            True, "Challenge created", ChallengeDetailSerializer(challenge).data,
            status_code=status.HTTP_201_CREATED,
        )

    @transaction.atomic
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        correct_answer = data.pop("correct_answer", None)
        explanation = data.pop("answer_explanation", None)

        answer_key = getattr(instance, "answer_key", None)
        if correct_answer is None:
            correct_answer = answer_key.correct_answer if answer_key else ""
        elif answer_key and not correct_answer.strip():
            return create_response(False, BLANK_ANSWER_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

        content_hash = fingerprint(
            data.get("title", instance.title),
            data.get("description", instance.description),
            correct_answer,
        )
        if Challenge.objects.filter(content_hash=content_hash).exclude(pk=instance.pk).exists():
            return create_response(False, DUPLICATE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

        for k, v in data.items():
            setattr(instance, k, v)
        instance.content_hash = content_hash
        try:
            with transaction.atomic():
                instance.save()
                if correct_answer:
                    if answer_key:
                        answer_key.correct_answer = correct_answer
                        if explanation is not None:
                            answer_key.explanation = explanation
                        answer_key.save()
                    else:
                        ChallengeAnswerKey.objects.create(
                            challenge=instance,
                            correct_answer=correct_answer,
                            explanation=explanation or correct_answer,
                            evaluation_rubric=instance.evaluation_criteria or [],
                        )
        except IntegrityError as e:
            # a concurrent write took this content hash first
            logger.warning("Update challenge %s failed: %s", instance.pk, e)
            return create_response(False, DUPLICATE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

        instance.refresh_from_db()
        return create_response(True, "Challenge updated", ChallengeDetailSerializer(instance).data)

    @action(detail=False, methods=["post"], parser_classes=[JSONParser])
    def generate_ai(self, request):
        """
        Body: { "skills": [...], "difficulty": "...", "challenge_type": "...", "count": <int>,
                "job_title": "...", "job_description": "...", "job_post_id": "...", "persist": true }
        """
        params = GenerateChallengesSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        p = params.validated_data

        gen_request = GenerationRequest(
            topic_skills=tuple(p["skills"]),
            difficulty=p["difficulty"],
            challenge_type=p["challenge_type"],
            desired_count=p["count"],
            job_title=p["job_title"],
            job_description=p["job_description"],
            job_post_id=p["job_post_id"],
        )

        try:
            result = ai_generate_unique_challenges(
                gen_request, persist=p["persist"], created_by_admin=p["created_by_admin"],
            )
        except Exception as e:
            logger.exception("AI challenge generation failed")
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        if result.produced == 0:
            return create_response(
                False, NOTHING_GENERATED_MESSAGE, {"stats": result.counters()},
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        if p["persist"]:
            saved = Challenge.objects.filter(id__in=list(result.persisted_ids.values())).order_by("id")
            challenges = ChallengeSerializer(saved, many=True).data
        else:
            challenges = _preview_payload(result, gen_request)

        return create_response(
            True,
            f"Successfully generated {result.produced} unique challenge(s)",
            {"challenges": challenges, "stats": result.counters(), "errors": result.persistence_errors},
            status_code=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], parser_classes=[JSONParser])
    def save_generated(self, request):
        """
        Body: { "job_post_id": "...", "job_title": "...", "challenges": [ {title, description, correct_answer, ...} ] }
        """
        params = SaveGeneratedChallengesSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        p = params.validated_data

        saved, rejected = [], []
        for c in p["challenges"]:
            content_hash = fingerprint(c["title"], c["description"], c["correct_answer"])
            if Challenge.objects.filter(content_hash=content_hash).exists():
                rejected.append({"title": c["title"], "error": DUPLICATE_MESSAGE})
                continue
            fields = {
                "title": c["title"],
                "description": c["description"],
                "difficulty": c["difficulty"],
                "challenge_type": c["challenge_type"],
                "skills": c["skills"],
                "estimated_time_minutes": c["estimated_time_minutes"],
                "evaluation_criteria": c["evaluation_criteria"],
                "content_hash": content_hash,
                "is_ai_generated": True,
                "created_by_admin": False,
                "job_post_id": p["job_post_id"],
                "generated_for_job": p["job_title"],
            }
            try:
                saved.append(store_challenge(fields, c["correct_answer"]))
            except PersistenceFailure as e:
                logger.error("Saving generated challenge failed: %s", e)
                rejected.append({"title": c["title"], "error": str(e)})

        if not saved:
            return create_response(
                False, "No challenges were saved", {"rejected": rejected},
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        return create_response(
            True,
            f"Saved {len(saved)} challenge(s)",
            {"challenges": ChallengeSerializer(saved, many=True).data, "rejected": rejected},
            status_code=status.HTTP_201_CREATED,
        )
