import json
import logging
import os

from groq import Groq, APIError as GroqAPIError
from openai import OpenAI, APIError as OpenAIAPIError
from rest_framework.response import Response
from rest_framework import status

from Assessments.generation.errors import GenerationFailure

logger = logging.getLogger(__name__)


def create_response(success, message, body=None, status_code=status.HTTP_200_OK):
    try:
        response_data = {'success': success, 'message': message}
        if body is not None:
            response_data['body'] = body
        return Response(response_data, status=status_code)
    except Exception as e:
        error_message = f"Error creating response: {str(e)}"
        return Response({'success': False, 'message': error_message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _strip_fences(s: str) -> str:
    t = s.strip()
    if t.startswith("```"):
        # remove ```json or ``` then trailing ```
        t = t[3:]
        if t.lower().startswith("json"):
            t = t[4:]
        if t.rstrip().endswith("```"):
            t = t.rstrip()[:-3]
        return t.strip()
    return t


def parse_json_content(content):
    """
    Parse a model reply into a dict. Accepts raw JSON or JSON inside code fences.
    Raises GenerationFailure when nothing usable comes back.
    """
    if isinstance(content, dict):
        return content
    if not isinstance(content, str) or not content.strip():
        raise GenerationFailure("Empty response from generation service")
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            data = json.loads(_strip_fences(content))
        except json.JSONDecodeError as e:
            raise GenerationFailure(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise GenerationFailure("Response JSON is not an object")
    return data


def _message_content(chat_completion, provider):
    choices = getattr(chat_completion, "choices", None)
    if not choices:
        raise GenerationFailure(f"{provider} returned no choices")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if content is None:
        raise GenerationFailure(f"{provider} returned an empty message")
    return content


def generate_response_with_groq(messages, response_format=None, model=None, max_completion_tokens=None,
                                temperature=None, timeout=None):
    """
    Single Groq chat completion. No SDK-level retries: callers own the retry budget.

    Returns (content, usage). Content is parsed into a dict when response_format == "json".
    """
    model = model or os.getenv("GROQ_MODEL")
    api_key = os.getenv("GROQ_API_KEY")

    if not api_key:
        raise GenerationFailure("API key is missing. Please set the GROQ_API_KEY environment variable.")

    client = Groq(api_key=api_key, timeout=timeout, max_retries=0)

    request_args = {
        "messages": messages,
        "model": model,
    }
    if max_completion_tokens:
        request_args["max_completion_tokens"] = max_completion_tokens
    if temperature is not None:
        request_args["temperature"] = temperature
    if response_format and response_format == "json":
        request_args["response_format"] = {"type": "json_object"}

    try:
        chat_completion = client.chat.completions.create(**request_args)
    except GroqAPIError as e:
        logger.warning("Groq call failed: %s", e)
        raise GenerationFailure(f"Groq call failed: {e}") from e

    response_content = _message_content(chat_completion, "Groq")
    if response_format and response_format == "json":
        response_content = parse_json_content(response_content)
    usage = chat_completion.usage
    return response_content, usage.model_dump() if usage else None


def generate_response_with_openai(messages, response_format=None, model=None, max_completion_tokens=None,
                                  temperature=None, timeout=None):
    """Same contract as generate_response_with_groq, for any OpenAI-compatible endpoint."""
    model = model or os.getenv("OPENAI_MODEL", "gpt-4o")
    api_key = os.getenv("OPENAI_API_KEY")

    if not api_key:
        raise GenerationFailure("API key is missing. Please set the OPENAI_API_KEY environment variable.")

    client = OpenAI(api_key=api_key, base_url=os.getenv("OPENAI_BASE_URL") or None, timeout=timeout, max_retries=0)

    request_args = {
        "messages": messages,
        "model": model,
    }
    if max_completion_tokens:
        request_args["max_tokens"] = max_completion_tokens
    if temperature is not None:
        request_args["temperature"] = temperature
    if response_format and response_format == "json":
        request_args["response_format"] = {"type": "json_object"}

    try:
        chat_completion = client.chat.completions.create(**request_args)
    except OpenAIAPIError as e:
        logger.warning("OpenAI call failed: %s", e)
        raise GenerationFailure(f"OpenAI call failed: {e}") from e

    response_content = _message_content(chat_completion, "OpenAI")
    if response_format and response_format == "json":
        response_content = parse_json_content(response_content)
    usage = chat_completion.usage
    return response_content, usage.model_dump() if usage else None
