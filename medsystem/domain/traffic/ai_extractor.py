"""
Lead-report extraction through the AI gateway (OpenAI-compatible chat completions).

The primary model is tried first; any non-2xx answer is retried once with the
fallback model. Gateway status codes that the user can act on (429, 402) map
to their own exception types so the endpoint can show a specific message.
"""

import json
import logging
import re
from typing import Optional

import httpx

from ...config import (
    AI_FALLBACK_MODEL,
    AI_GATEWAY_API_KEY,
    AI_GATEWAY_URL,
    AI_PRIMARY_MODEL,
    AI_REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = (
    "Você é um assistente especializado em análise de relatórios de leads. "
    "Extraia as seguintes informações do texto e retorne APENAS um objeto JSON válido "
    "sem formatação markdown: period_start (YYYY-MM-DD), period_end (YYYY-MM-DD), "
    "total_leads, scheduled_appointments, not_scheduled, awaiting_response, no_continuity, "
    "no_contact_after_attempts, leads_outside_brasilia, active_leads, in_progress, "
    "concierge_name, scheduled_patients (array com os nomes completos dos pacientes "
    "que foram agendados). Use null quando ausente."
)


class AIGatewayError(Exception):
    """Gateway failed or returned something that is not a report"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AIRateLimitError(AIGatewayError):
    pass


class AICreditsExhaustedError(AIGatewayError):
    pass


def parse_report_json(content: str) -> dict:
    """First {...} block of the model reply; models sometimes wrap JSON in prose or fences"""
    match = JSON_BLOCK_PATTERN.search(content or "")
    try:
        data = json.loads(match.group(0) if match else content)
    except (TypeError, ValueError) as e:
        raise AIGatewayError("Não foi possível extrair dados do texto do PDF.", details=str(e))
    if not isinstance(data, dict):
        raise AIGatewayError("Não foi possível extrair dados do texto do PDF.")
    return data


class TrafficReportExtractor:
    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        timeout: float = AI_REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or AI_GATEWAY_API_KEY
        self.url = url or AI_GATEWAY_URL
        self.primary_model = primary_model or AI_PRIMARY_MODEL
        self.fallback_model = fallback_model or AI_FALLBACK_MODEL
        self.timeout = timeout

    def _body(self, model: str, text: str) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": [{"type": "text", "text": text}]},
            ],
        }

    async def extract(self, text: str) -> dict:
        if not self.api_key:
            logger.error("❌ AI_GATEWAY_API_KEY not configured")
            raise AIGatewayError("Configuração de API incompleta")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.info(f"🤖 Analyzing traffic report with {self.primary_model}")
                response = await client.post(
                    self.url, headers=headers, json=self._body(self.primary_model, text)
                )
                if not response.is_success:
                    logger.warning(
                        f"⚠️ {self.primary_model} failed ({response.status_code}): "
                        f"{response.text[:500]}, retrying with {self.fallback_model}"
                    )
                    response = await client.post(
                        self.url, headers=headers, json=self._body(self.fallback_model, text)
                    )
        except httpx.HTTPError as e:
            logger.error(f"❌ AI gateway request failed: {e}")
            raise AIGatewayError("Erro ao analisar texto do PDF.", details=str(e)) from e

        if not response.is_success:
            status = response.status_code
            logger.error(f"❌ AI gateway final error {status}: {response.text[:500]}")
            if status == 429:
                raise AIRateLimitError(
                    "Limite de requisições de IA excedido. Aguarde e tente novamente.",
                    status_code=429,
                )
            if status == 402:
                raise AICreditsExhaustedError("Créditos de IA esgotados.", status_code=402)
            raise AIGatewayError(
                "Erro ao analisar texto do PDF.", status_code=status, details=response.text
            )

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIGatewayError(
                "Não foi possível extrair dados do texto do PDF.", details=str(e)
            ) from e

        data = parse_report_json(content)
        logger.info(f"✅ Traffic report extracted: {list(data.keys())}")
        return data
