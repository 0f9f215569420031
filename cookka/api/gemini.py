import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Depends, Request
from google.genai import errors

from cookka.core.errors import (
    GatewayError,
    InvalidInput,
    UnexpectedFailure,
    UpstreamFailure,
)
from cookka.dependencies import get_gemini_service
from cookka.models.gemini import (
    ChatRequest,
    ErrorResponse,
    ExpirationRequest,
    ExpirationResponse,
    OcrRequest,
    RecipeNameRequest,
    RecipeNameResponse,
    RecipeStructureRequest,
    RecipeStructureResponse,
    TextResponse,
)
from cookka.services.gemini_service import GeminiService
from cookka.services.parsing import (
    parse_expiration_days,
    parse_recipe_structure,
    parse_recipe_suggestion,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    "4XX": {"model": ErrorResponse},
}


@contextmanager
def _error_boundary(
    *,
    failure_message: str,
    upstream_message: str | None = None,
    with_details: bool = False,
) -> Iterator[None]:
    """Convert anything raised by a route body into a ``GatewayError``.

    Gemini API errors keep their HTTP status when ``upstream_message`` is
    given; the upstream body is only logged.
    """
    try:
        yield
    except GatewayError:
        raise
    except errors.APIError as e:
        if upstream_message is None:
            logger.exception(failure_message)
            raise UnexpectedFailure(
                failure_message, details=str(e) if with_details else None
            ) from e
        logger.error("Gemini API request failed: %s %s", e.code, e.details)
        status_code = e.code if isinstance(e.code, int) and e.code >= 400 else 500
        raise UpstreamFailure(upstream_message, status_code=status_code) from e
    except Exception as e:
        logger.exception(failure_message)
        raise UnexpectedFailure(
            failure_message, details=str(e) if with_details else None
        ) from e


def _required_text(body: Any, field: str) -> str:
    value = body.get(field) if isinstance(body, dict) else None
    if not isinstance(value, str) or not value:
        raise InvalidInput(f"{field} is required")
    return value


@router.post("/chat", response_model=TextResponse, responses=_ERROR_RESPONSES)
async def chat_endpoint(
    request: Request,
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> TextResponse:
    with _error_boundary(
        failure_message="서버 오류가 발생했습니다.",
        upstream_message="채팅 처리 실패",
    ):
        body = await request.json()
        _required_text(body, "message")
        payload = ChatRequest.model_validate(body)

        gemini_service.require_configured()

        text = await gemini_service.generate_chat_response(
            message=payload.message,
            history=payload.conversation_history,
        )
        return TextResponse(text=text)


@router.post("/ocr", response_model=TextResponse, responses=_ERROR_RESPONSES)
async def ocr_endpoint(
    request: Request,
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> TextResponse:
    with _error_boundary(
        failure_message="OCR 처리 중 오류가 발생했습니다.",
        upstream_message="OCR 처리 실패",
    ):
        body = await request.json()
        _required_text(body, "image")
        payload = OcrRequest.model_validate(body)

        gemini_service.require_configured()

        text = await gemini_service.extract_text(payload.image)
        return TextResponse(text=text)


@router.post(
    "/expiration", response_model=ExpirationResponse, responses=_ERROR_RESPONSES
)
async def expiration_endpoint(
    request: Request,
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> ExpirationResponse:
    with _error_boundary(
        failure_message="유통기한 계산 중 오류가 발생했습니다.",
        upstream_message="유통기한 계산 실패",
    ):
        body = await request.json()
        _required_text(body, "itemName")
        payload = ExpirationRequest.model_validate(body)

        gemini_service.require_configured()

        text = await gemini_service.estimate_expiration_text(payload.item_name)
        days = parse_expiration_days(text)
        if days is None:
            logger.warning(
                "No usable expiration for %r in answer %r", payload.item_name, text
            )
            raise InvalidInput("유효한 유통기한을 계산할 수 없습니다.")
        return ExpirationResponse(expiration_days=days)


@router.post(
    "/recipe-name",
    response_model=RecipeNameResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def recipe_name_endpoint(
    request: Request,
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> RecipeNameResponse:
    with _error_boundary(
        failure_message="Failed to generate recipe name", with_details=True
    ):
        body = await request.json()
        if not isinstance(body, dict) or not any(
            body.get(field) for field in ("title", "description", "pinnedComment")
        ):
            raise InvalidInput("At least one field is required")
        payload = RecipeNameRequest.model_validate(body)

        gemini_service.require_configured()

        text = await gemini_service.suggest_recipe_name_text(
            title=payload.title,
            description=payload.description,
            pinned_comment=payload.pinned_comment,
        )
        name, color = parse_recipe_suggestion(text, fallback_name=payload.title)
        return RecipeNameResponse(name=name, color=color)


@router.post(
    "",
    response_model=RecipeStructureResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def recipe_text_endpoint(
    request: Request,
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> RecipeStructureResponse:
    """Clean a video description into name, ingredients and method.

    Once the input is valid and a key is configured, every failure degrades
    to returning the source text unchanged as ``cleanedText``.
    """
    text = ""
    try:
        body = await request.json()
        text = _required_text(body, "text")
        payload = RecipeStructureRequest.model_validate(body)

        gemini_service.require_configured(
            details="GEMINI_API_KEY 환경 변수를 확인해주세요."
        )

        generated = await gemini_service.structure_recipe_text(payload.text)
        if generated is None:
            logger.warning("All Gemini models failed, returning the source text")
            return RecipeStructureResponse(cleaned_text=payload.text)
        return parse_recipe_structure(generated, payload.text)
    except GatewayError:
        raise
    except Exception:
        logger.warning("Recipe structuring failed, returning the source text", exc_info=True)
        return RecipeStructureResponse(cleaned_text=text)
