from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from functools import lru_cache

from google import genai
from google.genai import errors, types
from langchain_core.prompts import PromptTemplate

from cookka.core.errors import InvalidInput, MisconfiguredService
from cookka.core.settings import Settings, get_settings
from cookka.models.gemini import ChatTurn
from cookka.services.parsing import (
    build_recipe_context,
    first_candidate_text,
    strip_data_url_prefix,
    to_upstream_role,
)

logger = logging.getLogger(__name__)

CHAT_FALLBACK_TEXT = "응답을 생성할 수 없습니다."
OCR_MIME_TYPE = "image/jpeg"

OCR_PROMPT = """이 이미지에서 재고 정보를 추출해주세요. 다음 정보를 찾아서 텍스트로 반환해주세요:
- 재고명 (상품명)
- 수량과 단위 (예: 10kg, 5개)
- 가격 (원 단위)

이미지에 보이는 모든 텍스트를 그대로 반환해주세요."""

_EXPIRATION_PROMPT = PromptTemplate.from_template(
    """다음 재고 항목의 일반적인 유통기한을 일(day) 단위로 계산해주세요. 숫자만 반환해주세요.

재고명: {item_name}

예시:
- 밥/쌀: 365일
- 김치: 30일
- 양파: 14일
- 고기: 3일
- 우유: 7일

숫자만 반환해주세요 (예: 30)."""
)

_RECIPE_NAME_PROMPT = PromptTemplate.from_template(
    """다음 YouTube 비디오 정보를 바탕으로 전체 컨텍스트를 분석하여 가장 적절한 한국 요리 레시피 이름을 추천해주세요.

{context}

위 정보의 제목, 설명, 고정 댓글을 모두 종합적으로 분석하여:
1. 실제로 어떤 요리인지 파악
2. 한국 요리 이름으로 간단하고 명확하게 표현
3. 예: "제육볶음", "된장찌개", "김치찌개", "콩나물무침", "어묵볶음" 등

반드시 두 줄만 반환하세요:
1줄: 요리 이름만 (한글)
2줄: 이 요리를 대표하는 색의 hex 코드 하나만 (예: 카레=#F59E0B, 김치찌개=#DC2626, 밥=#FBBF24). #으로 시작하는 6자리 hex만."""
)

_RECIPE_TEXT_PROMPT = PromptTemplate.from_template(
    """제공되는 [Input Text]는 유튜브 설명란에서 가져온 원본 데이터로, HTML 태그, 영어 번역, 이모지, 해시태그 등이 섞여 있습니다.

이 텍스트를 분석하여 다음 [Output Format]에 맞춰 한국어로 깔끔하게 정리해 주세요.

[Input Text]
{text}

[요구사항]
1. 불필요한 HTML 태그(<br> 등), 영어 번역문, 해시태그(#shorts 등), 인사말은 모두 제거하십시오.
2. '[재료]' 섹션에는 고기, 채소, 양념 등 모든 식재료와 분량을 쉼표(,)로 구분하여 나열하십시오.
3. '[레시피]' 섹션에는 조리 과정을 논리적인 순서대로 1, 2, 3... 번호를 매겨 서술형으로 작성하십시오.
4. 문체는 "~합니다", "~하세요"와 같은 정중하고 명확한 요리책 스타일을 유지하십시오.
5. 재료인지 판단: 실제 요리에 사용되는 식재료만 포함하세요. 조리 방법 설명이나 동작은 재료가 아닙니다.
   - 재료가 아닌 것의 예시: "고기 재우는 동안", "버무려서", "넣고", "시켜요", "하는 동안 같이 숙성을 시켜요" 등
   - 재료인 것의 예시: "돼지고기 300g", "양파 1개", "고추장 2큰술", "마늘 1스푼" 등

[Output Format]
반드시 다음 JSON 형식으로만 반환하세요 (추가 설명이나 텍스트 없이 JSON만):
{{
  "name": "요리이름",
  "color": "#hex6자리",
  "recipe": "(재료명) (분량), (재료명) (분량), ...",
  "method": "1. (첫 번째 조리 과정)\\n2. (두 번째 조리 과정)\\n..."
}}

중요 사항:
- name 필드: 텍스트의 제목, 설명, 댓글을 모두 분석하여 가장 적절한 한국 요리 이름을 추출하세요. 예시: "제육볶음", "된장찌개", "김치찌개" 등
- color 필드: 이 요리를 대표하는 색의 hex 코드 하나 (예: 카레=#F59E0B, 김치찌개=#DC2626, 밥=#FBBF24). 반드시 #으로 시작하는 6자리 hex만.
- recipe 필드: 재료를 쉼표(,)로 구분하여 나열하세요. 예시: "돼지고기 300g, 양파 1개, 고추장 2큰술, 마늘 1스푼"
- method 필드: 조리 과정을 번호를 매겨서 서술형으로 작성하세요. 예시: "1. 고기를 준비합니다.\\n2. 양파를 썹니다.\\n3. 양념장을 만듭니다."
- 결과는 반드시 JSON 형식만 반환하고, 추가 설명이나 텍스트는 포함하지 마세요."""
)


@lru_cache
def get_genai_client(api_key: str) -> genai.Client:
    """One SDK client, and so one connection pool, per API key."""
    return genai.Client(api_key=api_key)


def decode_image_payload(image: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url_prefix(image), validate=True)
    except binascii.Error as e:
        raise InvalidInput("OCR 처리 실패") from e


class GeminiService:
    """Thin wrapper over the google-genai client, one upstream call per operation.

    The SDK client is looked up lazily so that a missing API key is reported
    before anything is sent upstream.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: genai.Client | None = None,
    ):
        self._settings = settings or get_settings()
        self._client = client

    def require_configured(self, details: str | None = None) -> None:
        if not self._settings.gemini_api_key:
            raise MisconfiguredService(
                "Gemini API key is not configured", details=details
            )

    @property
    def client(self) -> genai.Client:
        self.require_configured()
        if self._client is None:
            self._client = get_genai_client(self._settings.gemini_api_key)
        return self._client

    async def _generate(
        self,
        *,
        model: str,
        contents: types.ContentListUnion,
        config: types.GenerateContentConfig | None = None,
    ) -> types.GenerateContentResponse:
        client = self.client

        def _send() -> types.GenerateContentResponse:
            return client.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )

        return await asyncio.to_thread(_send)

    async def generate_chat_response(
        self, message: str, history: list[ChatTurn]
    ) -> str:
        contents: list[types.Content] = [
            types.Content(
                role=to_upstream_role(turn.role),
                parts=[types.Part.from_text(text=turn.text)],
            )
            for turn in history
        ]
        contents.append(
            types.Content(role="user", parts=[types.Part.from_text(text=message)])
        )

        response = await self._generate(
            model=self._settings.gemini_chat_model,
            contents=contents,
            config=types.GenerateContentConfig(
                temperature=self._settings.gemini_chat_temperature
            ),
        )
        return first_candidate_text(response) or CHAT_FALLBACK_TEXT

    async def extract_text(self, image: str) -> str:
        """Send the image with the inventory extraction prompt.

        The payload must be strict base64 once any data-URL header is
        dropped; anything else is rejected before the upstream call.
        """
        data = decode_image_payload(image)
        contents = [
            types.Content(
                parts=[
                    types.Part.from_bytes(data=data, mime_type=OCR_MIME_TYPE),
                    types.Part.from_text(text=OCR_PROMPT),
                ]
            )
        ]

        response = await self._generate(
            model=self._settings.gemini_vision_model,
            contents=contents,
        )
        return first_candidate_text(response) or ""

    async def estimate_expiration_text(self, item_name: str) -> str:
        prompt = _EXPIRATION_PROMPT.format(item_name=item_name)
        response = await self._generate(
            model=self._settings.gemini_vision_model,
            contents=prompt,
        )
        return first_candidate_text(response) or ""

    async def suggest_recipe_name_text(
        self,
        *,
        title: str | None,
        description: str | None,
        pinned_comment: str | None,
    ) -> str:
        """Ask for a dish name and color, walking the model chain on 404s.

        A model that answers 404 (retired or not enabled for the key) hands
        over to the next one; any other error, or a 404 from the last
        model, is raised.
        """
        models = self._settings.gemini_recipe_models
        if not models:
            raise RuntimeError("GEMINI_RECIPE_MODELS is empty")

        prompt = _RECIPE_NAME_PROMPT.format(
            context=build_recipe_context(title, description, pinned_comment)
        )
        config = types.GenerateContentConfig(
            temperature=self._settings.gemini_chat_temperature
        )

        *fallbacks, last_model = models
        for model in fallbacks:
            try:
                response = await self._generate(
                    model=model, contents=prompt, config=config
                )
            except errors.APIError as e:
                if e.code != 404:
                    raise
                logger.warning("Gemini model %s unavailable, trying the next one", model)
                continue
            return first_candidate_text(response) or ""

        response = await self._generate(
            model=last_model, contents=prompt, config=config
        )
        return first_candidate_text(response) or ""

    async def structure_recipe_text(self, text: str) -> str | None:
        """Rewrite a video description as a JSON recipe.

        Models are tried in order and any failure moves on to the next one.
        Returns None when every model failed.
        """
        prompt = _RECIPE_TEXT_PROMPT.format(text=text)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=self._settings.gemini_chat_temperature,
        )

        for model in self._settings.gemini_recipe_text_models:
            try:
                response = await self._generate(
                    model=model, contents=prompt, config=config
                )
            except MisconfiguredService:
                raise
            except Exception as e:
                logger.error("Gemini model %s failed to structure recipe: %s", model, e)
                continue
            logger.info("Recipe text structured with %s", model)
            return first_candidate_text(response) or ""
        return None
