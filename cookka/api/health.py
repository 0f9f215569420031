from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
def service_info() -> dict[str, str]:
    return {"status": "running", "service": "Cookka AI Gateway"}


@router.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
