"""AI Advisor - OpenAI / Azure OpenAI backed case review and classification"""
import json
from typing import Any, Dict, List, Optional, Union
from openai import APIConnectionError, AzureOpenAI, OpenAI

from ..domain.errors import CollaboratorUnavailable, OpenAIError
from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

CASE_CATEGORIES = [
    ("building", "Construction, renovation, structural changes"),
    ("electrical", "Electrical work, wiring, installations"),
    ("plumbing", "Plumbing work, water, sewer"),
    ("mechanical", "HVAC, mechanical systems"),
    ("demolition", "Demolition work"),
    ("sign", "Sign installations"),
    ("zoning", "Zoning changes, variances"),
    ("general", "General permits or unclear"),
]

DEFAULT_REVIEW_CRITERIA = "- All required information provided\n- Cost under threshold\n- No red flags"


class AIAdvisor:
    """
    Thin wrapper over the chat completions API
    
    Azure OpenAI is used when an endpoint and key are configured, plain
    OpenAI when only an API key is. With neither, the advisor reports itself
    unavailable and every call raises CollaboratorUnavailable; so does a
    call that cannot reach the service or times out.
    """
    
    def __init__(self, client: Optional[Union[OpenAI, AzureOpenAI]] = None, model: Optional[str] = None):
        self.model = model or settings.ai_model
        self.client = client if client is not None else self._build_client()
    
    def _build_client(self) -> Optional[Union[OpenAI, AzureOpenAI]]:
        if settings.uses_azure_openai:
            return AzureOpenAI(
                azure_endpoint=settings.azure_openai_endpoint,
                api_key=settings.azure_openai_api_key,
                api_version=settings.azure_openai_api_version,
                timeout=settings.ai_request_timeout_seconds
            )
        if settings.openai_api_key:
            return OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.ai_request_timeout_seconds
            )
        logger.info("AI advisor disabled: no OpenAI credentials configured")
        return None
    
    def is_available(self) -> bool:
        return self.client is not None
    
    def review(self, case_text: str, criteria: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask the model whether a case can be approved automatically
        
        Returns:
            {"approved": bool, "confidence": float, "reason": str}
        """
        prompt = f"""Review this permit application and determine if it can be automatically approved:

{case_text}

Criteria for automatic approval:
{criteria or DEFAULT_REVIEW_CRITERIA}

Respond with JSON: {{"approved": boolean, "reason": "explanation", "confidence": 0.0-1.0}}"""
        
        result = self._complete_json(
            system_prompt="You are an expert government permit reviewer. Always respond with valid JSON only.",
            prompt=prompt
        )
        return {
            "approved": bool(result.get("approved", False)),
            "confidence": self._confidence(result),
            "reason": str(result.get("reason", ""))
        }
    
    def classify(self, case_text: str) -> Dict[str, Any]:
        """
        Ask the model for the case category
        
        Returns:
            {"type": str, "confidence": float, "reasoning": str}
        """
        categories = "\n".join(f"- {name}: {desc}" for name, desc in CASE_CATEGORIES)
        prompt = f"""Classify the following permit request into one of these categories:
{categories}

{case_text}

Respond in JSON format with:
{{"type": "category", "confidence": 0.0-1.0, "reasoning": "brief explanation"}}"""
        
        result = self._complete_json(
            system_prompt="You are an expert permit classifier. Always respond with valid JSON only.",
            prompt=prompt
        )
        case_type = result.get("type")
        if not isinstance(case_type, str) or not case_type:
            raise OpenAIError("AI classification returned no type", details={"response": result})
        return {
            "type": case_type.strip().lower(),
            "confidence": self._confidence(result),
            "reasoning": str(result.get("reasoning", ""))
        }
    
    def _complete_json(self, system_prompt: str, prompt: str) -> Dict[str, Any]:
        if self.client is None:
            raise CollaboratorUnavailable("AI service not available")
        
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt}
        ]
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=settings.ai_temperature,
                max_tokens=500,
                response_format={"type": "json_object"}
            )
        except APIConnectionError as e:
            # APITimeoutError included
            logger.warning(f"AI service unreachable: {e}")
            raise CollaboratorUnavailable(f"AI service unreachable: {e}") from e
        except Exception as e:
            logger.error(f"AI completion failed: {e}")
            raise OpenAIError(f"AI completion failed: {str(e)}") from e
        
        if not response.choices:
            raise OpenAIError("AI returned no response choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise OpenAIError("AI returned empty response")
        
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise OpenAIError("AI returned invalid JSON", details={"content": content[:500]}) from e
        if not isinstance(parsed, dict):
            raise OpenAIError("AI returned a non-object JSON document", details={"content": content[:500]})
        return parsed
    
    @staticmethod
    def _confidence(result: Dict[str, Any]) -> float:
        try:
            return max(0.0, min(1.0, float(result.get("confidence", 0.0))))
        except (TypeError, ValueError):
            return 0.0
