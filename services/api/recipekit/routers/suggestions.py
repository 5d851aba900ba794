"""
Router for suggestions: feature requests, bug reports and improvement ideas.

Votes are one per voter (client address); voting again takes the vote back.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_suggestion

router = APIRouter()
logger = logging.getLogger("recipekit.suggestions")


def _require_recipe(db: Session, recipe_id: Optional[str]) -> None:
    if recipe_id is not None and not db.get(models.Recipe, recipe_id):
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")


@router.get("/suggestions", response_model=schemas.SuggestionListOut)
def list_suggestions(
    db: Session = Depends(get_db),
    status_filter: Optional[schemas.SuggestionStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Most voted first, newest breaking ties."""
    query = db.query(models.Suggestion)
    if status_filter:
        query = query.filter(models.Suggestion.status == status_filter.value)

    # One extra row tells whether another page exists
    rows = (
        query.order_by(models.Suggestion.votes.desc(), models.Suggestion.created_at.desc())
        .offset(offset)
        .limit(limit + 1)
        .all()
    )
    return schemas.SuggestionListOut(suggestions=rows[:limit], has_more=len(rows) > limit)


@router.post("/suggestions", response_model=schemas.SuggestionOut, status_code=status.HTTP_201_CREATED)
def create_suggestion(
    suggestion_in: schemas.SuggestionCreate,
    db: Session = Depends(get_db),
):
    _require_recipe(db, suggestion_in.related_recipe_id)
    suggestion = models.Suggestion(
        title=suggestion_in.title.strip(),
        description=suggestion_in.description.strip(),
        category=suggestion_in.category.value,
        priority=suggestion_in.priority.value,
        related_recipe_id=suggestion_in.related_recipe_id,
    )
    db.add(suggestion)
    db.commit()
    db.refresh(suggestion)
    logger.info(f"Created suggestion {suggestion.id} ({suggestion.category})")
    return suggestion


@router.get("/suggestions/{suggestion_id}", response_model=schemas.SuggestionOut)
def read_suggestion(suggestion: models.Suggestion = Depends(get_suggestion)):
    return suggestion


@router.patch("/suggestions/{suggestion_id}", response_model=schemas.SuggestionOut)
def update_suggestion(
    suggestion_in: schemas.SuggestionUpdate,
    suggestion: models.Suggestion = Depends(get_suggestion),
    db: Session = Depends(get_db),
):
    # json mode stores enums by value
    data = suggestion_in.model_dump(exclude_unset=True, mode="json")
    if "related_recipe_id" in data:
        _require_recipe(db, data["related_recipe_id"])
    for key in ("title", "description"):
        if key in data:
            data[key] = data[key].strip()

    for k, v in data.items():
        setattr(suggestion, k, v)

    db.commit()
    db.refresh(suggestion)
    return suggestion


@router.delete("/suggestions/{suggestion_id}")
def delete_suggestion(
    suggestion: models.Suggestion = Depends(get_suggestion),
    db: Session = Depends(get_db),
):
    db.delete(suggestion)
    db.commit()
    return {"ok": True}


@router.post("/suggestions/{suggestion_id}/vote", response_model=schemas.SuggestionVoteOut)
def toggle_vote(
    request: Request,
    suggestion: models.Suggestion = Depends(get_suggestion),
    db: Session = Depends(get_db),
):
    voter = get_remote_address(request)
    existing = (
        db.query(models.SuggestionVote)
        .filter(
            models.SuggestionVote.suggestion_id == suggestion.id,
            models.SuggestionVote.voter == voter,
        )
        .first()
    )
    if existing:
        db.delete(existing)
        suggestion.votes = max(suggestion.votes - 1, 0)
        voted = False
    else:
        db.add(models.SuggestionVote(suggestion_id=suggestion.id, voter=voter))
        suggestion.votes += 1
        voted = True

    db.commit()
    return schemas.SuggestionVoteOut(
        id=suggestion.id,
        title=suggestion.title,
        voted=voted,
        votes=suggestion.votes,
    )


@router.post(
    "/suggestions/{suggestion_id}/duplicate",
    response_model=schemas.SuggestionOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_suggestion(
    overrides: schemas.SuggestionDuplicate,
    suggestion: models.Suggestion = Depends(get_suggestion),
    db: Session = Depends(get_db),
):
    """Copy a suggestion as a fresh submission: status resets, votes start at 0."""
    fields = overrides.model_fields_set
    related = overrides.related_recipe_id if "related_recipe_id" in fields else suggestion.related_recipe_id
    if "related_recipe_id" in fields:
        _require_recipe(db, related)

    copy = models.Suggestion(
        title=overrides.title.strip() if overrides.title else suggestion.title,
        description=(
            overrides.description.strip() if overrides.description else suggestion.description
        ),
        category=overrides.category.value if overrides.category else suggestion.category,
        priority=overrides.priority.value if overrides.priority else suggestion.priority,
        related_recipe_id=related,
        variant_of=suggestion.id,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy
