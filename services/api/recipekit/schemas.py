"""Pydantic schemas for RecipeKit API.

Request/response models for:
- Units (convert, compatibility, price, format)
- Ingredients (with bridging conversions and pricing)
- Recipes (with nested ingredient lines and steps)
- Shopping lists
- Suggestions (feature requests and bug reports)
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .services.unit_conversion import Unit, UnitCategory


# --- Units ---

class UnitOut(BaseModel):
    unit: Unit
    category: Optional[UnitCategory]
    factor_to_base: Optional[float]  # None for free-text
    display_name: str


class UnitConvertRequest(BaseModel):
    qty: float = Field(..., allow_inf_nan=False)
    from_unit: Unit
    to_unit: Unit


class UnitConvertResponse(BaseModel):
    qty: float
    unit: Unit
    display_qty: float  # Rounded for display only
    display: str


class UnitCompatibleRequest(BaseModel):
    from_unit: Unit
    to_unit: Unit


class UnitCompatibleResponse(BaseModel):
    compatible: bool
    from_category: Optional[UnitCategory]
    to_category: Optional[UnitCategory]


class UnitPriceRequest(BaseModel):
    price_per_unit: float = Field(..., allow_inf_nan=False)
    from_unit: Unit
    to_unit: Unit


class UnitPriceResponse(BaseModel):
    price_per_unit: float
    unit: Unit
    display_price: float


class UnitFormatResponse(BaseModel):
    unit: str
    display_name: str


# --- Ingredient ---

class NutritionalInfo(BaseModel):
    """Values per 100g."""
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbohydrates: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None


class ConversionRuleIn(BaseModel):
    """1 from_unit of the ingredient equals `factor` to_unit (e.g. 1 cup flour = 120 g)."""
    from_unit: Unit
    to_unit: Unit
    factor: float = Field(..., gt=0)

    @model_validator(mode="after")
    def check_units(self):
        if Unit.FREE_TEXT in (self.from_unit, self.to_unit):
            raise ValueError('Conversions cannot use the "free-text" unit')
        return self


def _check_ingredient_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return name
    if not name.strip():
        raise ValueError("Ingredient name is required and cannot be empty")
    if len(name) > 100:
        raise ValueError("Ingredient name is too long (max 100 characters)")
    return name


def _check_price(price_per_unit, price_unit):
    if price_per_unit is not None and price_unit is None:
        raise ValueError("price_unit is required when price_per_unit is set")
    if price_unit == Unit.FREE_TEXT:
        raise ValueError('price_unit cannot be "free-text"')


class IngredientCreate(BaseModel):
    name: str
    aliases: list[str] = []
    categories: list[str] = []
    allergens: list[str] = []
    nutrition: Optional[NutritionalInfo] = None
    metadata: Optional[dict[str, str]] = None
    supported_units: list[Unit] = []
    unit_conversions: list[ConversionRuleIn] = []
    price_per_unit: Optional[float] = Field(None, ge=0)
    price_unit: Optional[Unit] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _check_ingredient_name(v)

    @model_validator(mode="after")
    def check_price(self):
        _check_price(self.price_per_unit, self.price_unit)
        return self


class IngredientUpdate(BaseModel):
    name: Optional[str] = None
    aliases: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    allergens: Optional[list[str]] = None
    nutrition: Optional[NutritionalInfo] = None
    metadata: Optional[dict[str, str]] = None
    supported_units: Optional[list[Unit]] = None  # Replaces the whole list
    add_supported_units: Optional[list[Unit]] = None
    remove_supported_units: Optional[list[Unit]] = None
    unit_conversions: Optional[list[ConversionRuleIn]] = None
    price_per_unit: Optional[float] = Field(None, ge=0)
    price_unit: Optional[Unit] = None

    @field_validator(
        "name", "aliases", "categories", "allergens", "supported_units", "unit_conversions"
    )
    @classmethod
    def check_not_null(cls, v, info):
        # Only reached for explicit values; omitted fields keep their default
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _check_ingredient_name(v)

    @model_validator(mode="after")
    def check_units(self):
        if self.supported_units is not None and (self.add_supported_units or self.remove_supported_units):
            raise ValueError(
                "supported_units cannot be combined with add_supported_units or remove_supported_units"
            )
        if self.price_unit == Unit.FREE_TEXT:
            raise ValueError('price_unit cannot be "free-text"')
        return self


class IngredientDuplicate(BaseModel):
    name: Optional[str] = None
    supported_units: Optional[list[Unit]] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _check_ingredient_name(v)


class IngredientOut(BaseModel):
    id: str
    name: str
    aliases: list[str]
    categories: list[str]
    allergens: list[str]
    nutrition: Optional[NutritionalInfo]
    metadata: Optional[dict[str, str]] = Field(None, validation_alias="extra_metadata")
    supported_units: list[Unit]
    unit_conversions: list[ConversionRuleIn]
    price_per_unit: Optional[float]
    price_unit: Optional[Unit]
    created_at: datetime

    class Config:
        from_attributes = True


class IngredientConvertRequest(BaseModel):
    qty: float = Field(..., allow_inf_nan=False)
    from_unit: Unit
    to_unit: Unit


# --- Recipe ---

class RecipeIngredientIn(BaseModel):
    ingredient_id: Optional[str] = None
    unit: Optional[Unit] = None
    quantity: Optional[float] = Field(None, ge=0)
    quantity_text: Optional[str] = Field(None, max_length=200)
    note: Optional[str] = None


class RecipeStepIn(BaseModel):
    text: Optional[str] = None
    equipment: list[str] = []


def _check_recipe_name(name: str) -> None:
    if not name or not name.strip():
        raise ValueError("Recipe name is required and cannot be empty")
    if len(name) > 200:
        raise ValueError("Recipe name is too long (max 200 characters)")


def _check_recipe_description(description: str) -> None:
    if not description or not description.strip():
        raise ValueError("Recipe description is required and cannot be empty")


def _check_servings(servings: Optional[int]) -> None:
    if servings is not None and not (1 <= servings <= 100):
        raise ValueError("Servings must be between 1 and 100")


def _check_lines(lines: list["RecipeIngredientIn"]) -> None:
    for i, ing in enumerate(lines, start=1):
        if not ing.ingredient_id:
            raise ValueError(f"Ingredient #{i}: ingredient_id is required")
        if ing.unit is None:
            raise ValueError(f"Ingredient #{i}: unit is required")
        if ing.unit == Unit.FREE_TEXT and not ing.quantity_text:
            raise ValueError(f'Ingredient #{i}: quantity_text is required when unit is "free-text"')
        if ing.unit != Unit.FREE_TEXT and ing.quantity is None:
            raise ValueError(f'Ingredient #{i}: quantity is required when unit is not "free-text"')


def _check_steps(steps: list["RecipeStepIn"]) -> None:
    for i, step in enumerate(steps, start=1):
        if not step.text or not step.text.strip():
            raise ValueError(f"Step #{i}: text is required and cannot be empty")


class RecipeCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    servings: Optional[int] = None
    ingredients: list[RecipeIngredientIn] = []
    steps: list[RecipeStepIn] = []
    tags: list[str] = []
    categories: list[str] = []
    source_url: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_recipe(self):
        _check_recipe_name(self.name)
        _check_recipe_description(self.description)
        _check_servings(self.servings)

        if not self.ingredients:
            raise ValueError("Recipe must have at least one ingredient")
        _check_lines(self.ingredients)

        if not self.steps:
            raise ValueError("Recipe must have at least one step")
        _check_steps(self.steps)
        return self


# (replace field, add field, remove field)
_RECIPE_LIST_EDITS = (
    ("tags", "add_tags", "remove_tags"),
    ("categories", "add_categories", "remove_categories"),
    ("ingredients", "add_ingredients", "remove_ingredient_ids"),
    ("steps", "add_steps", "remove_step_indexes"),
)


class RecipeUpdate(BaseModel):
    """
    Partial recipe update.

    Each list is either replaced whole (`tags`) or edited (`add_tags` /
    `remove_tags`), never both in one request.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    servings: Optional[int] = None
    source_url: Optional[str] = Field(None, max_length=500)

    ingredients: Optional[list[RecipeIngredientIn]] = None
    steps: Optional[list[RecipeStepIn]] = None
    tags: Optional[list[str]] = None
    categories: Optional[list[str]] = None

    add_tags: Optional[list[str]] = None
    remove_tags: Optional[list[str]] = None
    add_categories: Optional[list[str]] = None
    remove_categories: Optional[list[str]] = None
    add_ingredients: Optional[list[RecipeIngredientIn]] = None
    # Catalog ingredient ids; every line using one is removed
    remove_ingredient_ids: Optional[list[str]] = None
    add_steps: Optional[list[RecipeStepIn]] = None
    # 0-based, against the steps as stored before this update
    remove_step_indexes: Optional[list[int]] = None

    @field_validator("name", "description", "ingredients", "steps", "tags", "categories")
    @classmethod
    def check_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("remove_step_indexes")
    @classmethod
    def check_step_indexes(cls, v):
        if v and any(i < 0 for i in v):
            raise ValueError("Step indexes must be 0 or greater")
        return v

    @model_validator(mode="after")
    def validate_update(self):
        for replace, add, remove in _RECIPE_LIST_EDITS:
            if getattr(self, replace) is not None and (getattr(self, add) or getattr(self, remove)):
                raise ValueError(f"{replace} cannot be combined with {add} or {remove}")

        if self.name is not None:
            _check_recipe_name(self.name)
        if self.description is not None:
            _check_recipe_description(self.description)
        _check_servings(self.servings)

        if self.ingredients is not None:
            if not self.ingredients:
                raise ValueError("Recipe must have at least one ingredient")
            _check_lines(self.ingredients)
        if self.add_ingredients:
            _check_lines(self.add_ingredients)

        if self.steps is not None:
            if not self.steps:
                raise ValueError("Recipe must have at least one step")
            _check_steps(self.steps)
        if self.add_steps:
            _check_steps(self.add_steps)
        return self


class RecipeDuplicate(BaseModel):
    """Overrides for the copy; anything omitted is taken from the source recipe."""
    name: Optional[str] = None
    description: Optional[str] = None
    servings: Optional[int] = None
    ingredients: Optional[list[RecipeIngredientIn]] = None
    steps: Optional[list[RecipeStepIn]] = None
    tags: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    source_url: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_overrides(self):
        if self.name is not None:
            _check_recipe_name(self.name)
        if self.description is not None:
            _check_recipe_description(self.description)
        _check_servings(self.servings)
        if self.ingredients is not None:
            if not self.ingredients:
                raise ValueError("Recipe must have at least one ingredient")
            _check_lines(self.ingredients)
        if self.steps is not None:
            if not self.steps:
                raise ValueError("Recipe must have at least one step")
            _check_steps(self.steps)
        return self


class RecipeIngredientOut(BaseModel):
    id: str
    ingredient_id: str
    ingredient_name: str
    unit: Unit
    quantity: Optional[float]
    quantity_text: Optional[str]
    note: Optional[str]

    class Config:
        from_attributes = True


class RecipeStepOut(BaseModel):
    id: str
    step_index: int
    text: str
    equipment: list[str]

    class Config:
        from_attributes = True


class RecipeOut(BaseModel):
    id: str
    name: str
    description: str
    servings: Optional[int]
    tags: list[str] = []
    categories: list[str] = []
    source_url: Optional[str] = None
    variant_of: Optional[str] = None
    ingredients: list[RecipeIngredientOut] = []
    steps: list[RecipeStepOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class RecipeListOut(BaseModel):
    """Lighter recipe model for list views (no lines or steps)."""
    id: str
    name: str
    description: str
    servings: Optional[int]
    tags: list[str] = []
    categories: list[str] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ScaledIngredientLine(BaseModel):
    ingredient_id: str
    ingredient_name: str
    unit: Unit
    quantity: Optional[float]  # Rounded for display
    quantity_text: Optional[str]
    note: Optional[str]
    display: str


class ScaledRecipeOut(BaseModel):
    recipe_id: str
    name: str
    base_servings: Optional[int]
    servings: Optional[int]
    multiplier: float
    ingredients: list[ScaledIngredientLine]


# --- Shopping List ---

class ShoppingListRecipeRef(BaseModel):
    recipe_id: str
    servings: Optional[int] = Field(None, ge=1, le=100)


class ShoppingListRequest(BaseModel):
    recipes: list[ShoppingListRecipeRef] = Field(..., min_length=1)


class ShoppingListSource(BaseModel):
    recipe_id: str
    recipe_name: str
    multiplier: float


class ShoppingListItem(BaseModel):
    ingredient_id: str
    ingredient_name: str
    unit: Unit
    quantity: Optional[float]
    quantity_texts: list[str] = []
    display: str
    unit_price: Optional[float] = None  # Per bucket unit, unrounded
    estimated_cost: Optional[float] = None
    sources: list[ShoppingListSource] = []


class ShoppingListResponse(BaseModel):
    items: list[ShoppingListItem]
    estimated_total: Optional[float] = None


# --- Suggestions ---

class SuggestionCategory(str, Enum):
    FEATURE = "feature"
    BUG = "bug"
    IMPROVEMENT = "improvement"
    OTHER = "other"


class SuggestionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SuggestionStatus(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"


def _check_suggestion_title(title: Optional[str]) -> Optional[str]:
    if title is None:
        return title
    if not title.strip():
        raise ValueError("Suggestion title is required and cannot be empty")
    if len(title) > 200:
        raise ValueError("Suggestion title is too long (max 200 characters)")
    return title


def _check_suggestion_description(description: Optional[str]) -> Optional[str]:
    if description is not None and not description.strip():
        raise ValueError("Suggestion description is required and cannot be empty")
    return description


class SuggestionCreate(BaseModel):
    title: str
    description: str
    category: SuggestionCategory = SuggestionCategory.OTHER
    priority: SuggestionPriority = SuggestionPriority.MEDIUM
    related_recipe_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _check_suggestion_title(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return _check_suggestion_description(v)


class SuggestionUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[SuggestionCategory] = None
    priority: Optional[SuggestionPriority] = None
    status: Optional[SuggestionStatus] = None
    related_recipe_id: Optional[str] = None  # null unlinks the recipe

    @field_validator("title", "description", "category", "priority", "status")
    @classmethod
    def check_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _check_suggestion_title(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return _check_suggestion_description(v)


class SuggestionDuplicate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[SuggestionCategory] = None
    priority: Optional[SuggestionPriority] = None
    related_recipe_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _check_suggestion_title(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return _check_suggestion_description(v)


class SuggestionOut(BaseModel):
    id: str
    title: str
    description: str
    category: SuggestionCategory
    priority: SuggestionPriority
    status: SuggestionStatus
    related_recipe_id: Optional[str]
    variant_of: Optional[str]
    votes: int
    created_at: datetime

    class Config:
        from_attributes = True


class SuggestionListOut(BaseModel):
    suggestions: list[SuggestionOut]
    has_more: bool


class SuggestionVoteOut(BaseModel):
    id: str
    title: str
    voted: bool  # False when this call removed an earlier vote
    votes: int
