"""
AI Service using AWS Bedrock (Claude)

One entry point, ``complete``: a fixed system prompt plus user messages in,
plain text out. Model choice follows the caller's tier.
"""
import json
import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.logger import sanitize_for_log
from app.utils.exceptions import AIServiceError

logger = logging.getLogger(__name__)

TIER_FREE = "FREE"
TIER_PRO = "PRO"

NOTICE_SYSTEM_PROMPT = (
    "You are a legal expert who drafts formal legal notices under Indian law. "
    "Use proper legal formatting and formal language suitable for Indian courts, "
    "refer to the relevant Indian statutes and sections, state clear demands and "
    "timelines, and close with a placeholder for the advocate's details.\n\n"
    "Do not use asterisks for formatting. Use headings and paragraphs."
)

RESEARCH_SYSTEM_PROMPT = (
    "You are a legal research expert in Indian law. Cover the relevant statutory "
    "provisions (IPC, CrPC, CPC, the Constitution, NI Act and so on), key case law "
    "with citations, the governing legal principles, and what it means in practice "
    "for a lawyer.\n\n"
    "Organise the answer in clear sections and cite actual sections and cases."
)

SUMMARIZER_SYSTEM_PROMPT = (
    "You are a legal expert who summarizes Indian court judgments and legal "
    "documents. Structure the summary as:\n"
    "1. Case Overview: brief facts and parties\n"
    "2. Key Issues: legal questions addressed\n"
    "3. Ratio Decidendi: core legal reasoning\n"
    "4. Final Order: judgment or decision\n"
    "5. Applicable Sections: laws cited\n"
    "6. Practical Implications: effect on similar cases\n\n"
    "Be concise but complete, and use Indian legal terminology."
)

CHAT_SYSTEM_PROMPT = (
    "You are a legal assistant for Indian advocates. Give clear, practical answers "
    "grounded in Indian law and say when a point needs checking against the record."
)


class AIService:
    """
    Thin wrapper around the Bedrock runtime client
    """

    def __init__(self, client=None):
        self.bedrock_client = client or boto3.client(
            "bedrock-runtime",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )

    @staticmethod
    def model_for_tier(tier: str) -> str:
        if tier == TIER_PRO:
            return settings.BEDROCK_PRO_MODEL_ID
        return settings.BEDROCK_MODEL_ID

    def complete(
        self,
        messages: List[Dict[str, str]],
        tier: str = TIER_FREE,
        max_tokens: int = 1500,
        temperature: float = 0.3,
    ) -> str:
        """
        Run one completion and return the text. Raises ``AIServiceError``.

        ``messages`` may open with ``{"role": "system", ...}`` entries; Bedrock
        takes those as the top-level ``system`` field.
        """
        model_id = self.model_for_tier(tier)
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [m for m in messages if m["role"] != "system"],
        }
        if system:
            body["system"] = system

        try:
            response = self.bedrock_client.invoke_model(
                modelId=model_id,
                body=json.dumps(body),
            )
            response_body = json.loads(response["body"].read())
            text = response_body["content"][0]["text"]
        except (BotoCoreError, ClientError) as e:
            logger.error("Bedrock invoke_model failed (%s): %s", model_id, sanitize_for_log(e))
            raise AIServiceError() from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Unexpected Bedrock response shape (%s): %s", model_id, sanitize_for_log(e))
            raise AIServiceError("Malformed AI response") from e

        usage = response_body.get("usage", {})
        logger.info(
            "AI completion ok: model=%s tier=%s tokens_in=%s tokens_out=%s",
            model_id, tier, usage.get("input_tokens", 0), usage.get("output_tokens", 0),
        )
        return text.strip()


_ai_service: Optional[AIService] = None


def get_ai_service() -> AIService:
    """Lazily built so importing the app never needs AWS credentials"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
