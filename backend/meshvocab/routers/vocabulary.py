from fastapi import APIRouter, HTTPException, Query

from meshvocab.models.vocabulary_models import (
    DescendantsResponse,
    RecordResponse,
    VocabularyStatus,
)
from meshvocab.services.vocabulary_service import (
    descendants,
    get_vocabulary,
    get_vocabulary_status,
    lookup_by_tree_number,
    lookup_by_ui,
    warmup_vocabulary,
)

router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])


def _require_vocabulary() -> None:
    try:
        get_vocabulary()
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=503, detail=f"MeSH vocabulary unavailable: {e}")


@router.get("/status", response_model=VocabularyStatus)
async def vocabulary_status() -> VocabularyStatus:
    """Check whether the MeSH vocabulary is loaded."""
    return get_vocabulary_status()


@router.post("/warmup", response_model=VocabularyStatus)
async def vocabulary_warmup() -> VocabularyStatus:
    """Trigger MeSH vocabulary loading in background."""
    return await warmup_vocabulary()


@router.get("/records/tree/{tree_number}", response_model=RecordResponse)
async def get_record_by_tree_number(tree_number: str) -> RecordResponse:
    """Look up the descriptor that declared a tree number."""
    _require_vocabulary()
    record = lookup_by_tree_number(tree_number)
    if record is None:
        raise HTTPException(status_code=404, detail="Tree number not found")
    return RecordResponse.from_record(record)


@router.get("/records/ui/{ui}", response_model=RecordResponse)
async def get_record_by_ui(ui: str) -> RecordResponse:
    """Look up a descriptor by its unique identifier."""
    _require_vocabulary()
    record = lookup_by_ui(ui)
    if record is None:
        raise HTTPException(status_code=404, detail="Descriptor not found")
    return RecordResponse.from_record(record)


@router.get("/tree/descendants", response_model=DescendantsResponse)
async def get_descendants(prefix: str = Query(..., min_length=1)) -> DescendantsResponse:
    """List every tree number below a prefix."""
    _require_vocabulary()
    found, paths = descendants(prefix)
    return DescendantsResponse(
        prefix=prefix,
        found=found,
        descendants=paths,
        total=len(paths),
    )
