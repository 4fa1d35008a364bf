# studioboard/integrations/gemini_client.py
from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import httpx

from studioboard.core.config import settings
from studioboard.core.errors import GenerativeError
from studioboard.modules.projects.schemas import ChecklistItem

logger = logging.getLogger(__name__)

# chave do JSON -> rótulo que prefixa cada tarefa
CHECKLIST_GROUPS = (
    ("pre_producao", "Pré-produção"),
    ("producao", "Produção"),
    ("pos_producao", "Pós-produção"),
)

CHECKLIST_SCHEMA = {
    "type": "OBJECT",
    "properties": {key: {"type": "ARRAY", "items": {"type": "STRING"}} for key, _ in CHECKLIST_GROUPS},
}


class GeminiClient:
    """Cliente REST mínimo da API Generative Language (Gemini)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.base_url = (base_url or settings.GEMINI_API_BASE).rstrip("/")
        self.text_model = text_model or settings.GEMINI_TEXT_MODEL
        self.image_model = image_model or settings.GEMINI_IMAGE_MODEL
        self._timeout = timeout or settings.GEMINI_TIMEOUT
        self._headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    async def _generate(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                r = await client.post(url, json=payload, headers=self._headers)
        except httpx.RequestError as e:
            raise GenerativeError(f"Falha de conexão com a API Gemini: {e}") from e

        if r.status_code >= 400:
            try:
                data = r.json()
            except ValueError:
                data = None
            error = data.get("error") if isinstance(data, dict) else None
            detail = (error.get("message") if isinstance(error, dict) else error) or r.text
            raise GenerativeError(f"API Gemini respondeu {r.status_code}: {detail}")

        try:
            data = r.json()
        except ValueError as e:
            raise GenerativeError("A API Gemini retornou uma resposta que não é JSON.") from e
        if not isinstance(data, dict):
            raise GenerativeError("A API Gemini retornou uma resposta em formato inesperado.")
        return data

    @staticmethod
    def _parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return []
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return [p for p in parts if isinstance(p, dict)]

    @classmethod
    def _text(cls, data: Dict[str, Any]) -> str:
        return "".join(p.get("text", "") for p in cls._parts(data)).strip()

    async def generate_checklist(self, title: str, description: str) -> List[ChecklistItem]:
        """Checklist de produção em três grupos. Qualquer falha devolve lista vazia."""
        prompt = (
            f'Para um projeto de vídeo com o título "{title}" e descrição "{description}", '
            'gere um checklist de produção. Separe as tarefas em "Pré-produção", "Produção" '
            'e "Pós-produção". Retorne SOMENTE o JSON.'
        )
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": CHECKLIST_SCHEMA,
            },
        }
        try:
            data = await self._generate(self.text_model, payload)
            raw = self._text(data) or "{}"
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as e:
                raise GenerativeError("A IA retornou uma resposta em um formato inválido.") from e
            if not isinstance(parsed, dict):
                raise GenerativeError("A IA retornou uma resposta em um formato inválido.")
        except GenerativeError as e:
            logger.error(f"Erro na API Gemini (checklist): {e}")
            return []

        items: List[ChecklistItem] = []
        for key, label in CHECKLIST_GROUPS:
            for task in parsed.get(key) or []:
                items.append(ChecklistItem(id=f"check-{uuid.uuid4().hex}", text=f"({label}) {task}", completed=False))
        return items

    async def generate_script(self, title: str, description: str) -> str:
        prompt = (
            f'Escreva um roteiro curto para um vídeo com o título "{title}". '
            f'A descrição do vídeo é: "{description}". O roteiro deve ser conciso, direto e '
            "pronto para gravação. Formate com indicações de cena e diálogo."
        )
        try:
            data = await self._generate(self.text_model, {"contents": [{"parts": [{"text": prompt}]}]})
        except GenerativeError as e:
            logger.error(f"Erro ao gerar roteiro: {e}")
            raise
        text = self._text(data)
        if not text:
            raise GenerativeError("Não foi possível gerar o texto.")
        return text

    async def generate_image(self, title: str) -> str:
        """Imagem conceito (thumbnail) em base64."""
        prompt = (
            f'Uma imagem de conceito cinematográfica para um vídeo chamado "{title}". '
            "Alta qualidade, arte digital, thumbnail para YouTube."
        )
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        try:
            data = await self._generate(self.image_model, payload)
        except GenerativeError as e:
            logger.error(f"Erro ao gerar imagem: {e}")
            raise

        parts = self._parts(data)
        if not parts:
            raise GenerativeError("A geração de imagem falhou.")
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                return inline["data"]
        raise GenerativeError("Nenhuma imagem retornada.")
