# Assessments/agents/challenge_prompts.py
import json
from typing import Sequence

from Assessments.generation.types import ESTIMATED_MINUTES_BY_DIFFICULTY, GenerationRequest

# ============ Unique challenge generation ============
CHALLENGE_GENERATION_SYSTEM = (
    "You are an expert forensic accounting professional creating unique assessment challenges "
    "for ProofAndFit, a job board where candidates prove their skills. "
    "You return exactly one challenge as a single STRICT JSON object. Never wrap JSON in backticks or prose."
)

CHALLENGE_GENERATION_PROMPT = """
CRITICAL REQUIREMENTS:
1. Generate completely UNIQUE content - avoid any similarity to existing challenges
2. Focus on <skills> skills at <difficulty> difficulty level
3. Create a <challenge_type> type challenge
4. The challenge must be substantively different from anything generated before
5. Avoid these content patterns (hashes): <exclusion_hints>
<job_context>
CHALLENGE REQUIREMENTS:
- title: Concise, professional title (max 100 characters)
- description: Detailed scenario with specific context, numbers, and realistic details (200-500 words)
- correct_answer: Comprehensive solution with step-by-step reasoning (150-300 words)
- difficulty: <difficulty>
- skills: <skills>
- challenge_type: <challenge_type>

SCENARIOS TO AVOID:
- Generic fraud detection scenarios
- Basic ratio analysis
- Simple embezzlement cases
- Standard audit procedures

FOCUS ON UNIQUE ELEMENTS:
- Specific industry contexts (healthcare, tech, manufacturing, etc.)
- Modern fraud schemes (cryptocurrency, digital payments, remote work fraud)
- Complex multi-jurisdictional cases
- Emerging forensic technologies
- Industry-specific compliance challenges

Return STRICT JSON with this exact structure:
{
  "title": "Specific, unique challenge title",
  "description": "Detailed, realistic scenario with specific context and data",
  "correct_answer": "Comprehensive solution with methodology and reasoning",
  "difficulty": "<difficulty>",
  "skills": <skills_json>,
  "challenge_type": "<challenge_type>",
  "estimated_time_minutes": <estimated_minutes>,
  "evaluation_criteria": <criteria_json>
}
"""

JOB_CONTEXT_BLOCK = """
This challenge is for a specific job posting:
JOB TITLE: <job_title>
JOB DESCRIPTION: <job_description>

Make the challenge directly relate to the job requirements, test the exact skills needed for
this position, and reflect the company's industry and context.
"""


def build_challenge_prompt(request: GenerationRequest, exclusion_hints: Sequence[str] = ()) -> str:
    skills = list(request.topic_skills)
    if request.is_job_specific:
        job_context = (
            JOB_CONTEXT_BLOCK
            .replace("<job_title>", request.job_title or "n/a")
            .replace("<job_description>", request.job_description or "n/a")
        )
        criteria = ["accuracy", "methodology", "reasoning", "industry_knowledge"]
    else:
        job_context = ""
        criteria = ["accuracy", "methodology", "reasoning", "completeness"]

    return (
        CHALLENGE_GENERATION_PROMPT
        .replace("<job_context>", job_context)
        .replace("<exclusion_hints>", ", ".join(exclusion_hints) or "none")
        .replace("<skills_json>", json.dumps(skills[:3]))
        .replace("<criteria_json>", json.dumps(criteria))
        .replace("<skills>", ", ".join(skills))
        .replace("<difficulty>", request.difficulty)
        .replace("<challenge_type>", request.challenge_type)
        .replace("<estimated_minutes>", str(ESTIMATED_MINUTES_BY_DIFFICULTY[request.difficulty]))
    )
