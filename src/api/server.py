"""FastAPI server for the meal portion solver."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.app_logging import configure_logging
from src.data_layer.exceptions import ProductNotFoundError
from src.data_layer.meal_plan_db import parse_entry
from src.data_layer.models import NutritionSettings
from src.data_layer.product_db import parse_product
from src.data_layer.settings_loader import parse_weekly_override
from src.output.formatters import format_result_json
from src.portioning.body_targets import (
    ActivityLevel,
    BmrFormula,
    CalculatorInput,
    GoalType,
    MacroRules,
    Sex,
    calculate_nutrition_targets,
    verify_macro_balance,
)
from src.portioning.phase0_models import (
    EditableMode,
    FoodCategory,
    MacroTarget,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
    SolverOptions,
    ToleranceWindow,
)
from src.portioning.phase1_targets import build_target, resolve_daily_targets
from src.portioning.product_conversion import eligibility_warning, entry_to_item
from src.portioning.solver import solve
from src.portioning.week_schedule import PlanMode, ZigzagShape, build_zigzag_schedule, weekly_average

logger = logging.getLogger(__name__)

app = FastAPI(title="Portion Solver API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class DensityModel(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float


class ItemModel(BaseModel):
    id: str
    name: str
    category: FoodCategory
    meal: MealSlot
    per_100g: DensityModel
    editable_mode: EditableMode = EditableMode.FREE
    min_grams: int = 0
    max_grams: int = 0
    step_grams: int = 1
    rounding_rule: RoundingRule = RoundingRule.NEAREST_1G
    unit_size_grams: Optional[int] = None
    eaten_factor: float = 1.0
    seasoning_rate: Optional[float] = None
    paired_item_id: Optional[str] = None
    current_grams: int = 0
    counts_toward_totals: Optional[bool] = None


class TargetModel(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float


class ToleranceModel(BaseModel):
    calories: float = 50
    protein: float = 1
    carbs: float = 1
    fat: float = 1


class SolveRequest(BaseModel):
    items: List[ItemModel]
    target: TargetModel
    max_iterations: int = 1500
    tolerances: ToleranceModel = Field(default_factory=ToleranceModel)
    seasonings_count_macros: bool = False
    debug_mode: bool = False


class SettingsModel(BaseModel):
    daily_calorie_target: Optional[int] = None
    protein_target_grams: Optional[float] = None
    carbs_target_grams: Optional[float] = None
    weekend_targets_enabled: bool = False
    weekend_calorie_target: Optional[int] = None
    weekend_protein_target_grams: Optional[float] = None
    weekend_carbs_target_grams: Optional[float] = None


class TargetsRequest(BaseModel):
    plan_date: date
    settings: Optional[SettingsModel] = None
    weekly_overrides: List[Dict[str, Any]] = Field(default_factory=list)


class ZigzagRequest(BaseModel):
    tdee: float
    plan_mode: PlanMode = PlanMode.MAINTAIN
    shape: ZigzagShape = ZigzagShape.WEEKEND_HIGH


class CalculatorRequest(BaseModel):
    age: int
    sex: Sex
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    formula: BmrFormula = BmrFormula.MIFFLIN_ST_JEOR
    body_fat_percent: Optional[float] = None
    goal: GoalType = GoalType.MAINTAIN
    protein_per_kg: float = 2.2
    fat_per_kg: float = 0.8


class MealPlanSolveRequest(BaseModel):
    products: List[Dict[str, Any]]
    items: List[Dict[str, Any]]
    calories: float
    protein: float
    carbs: float
    max_iterations: int = 1500
    seasonings_count_macros: bool = False


def _build_item(model: ItemModel) -> PortionableItem:
    counts = model.counts_toward_totals
    if counts is None:
        counts = model.category != FoodCategory.SEASONING
    return PortionableItem(
        id=model.id,
        name=model.name,
        category=model.category,
        meal_slot=model.meal,
        density=NutrientDensity(
            calories=model.per_100g.calories,
            protein_g=model.per_100g.protein,
            carbs_g=model.per_100g.carbs,
            fat_g=model.per_100g.fat,
        ),
        editable_mode=model.editable_mode,
        min_grams=model.min_grams,
        max_grams=model.max_grams,
        step_grams=model.step_grams,
        rounding_rule=model.rounding_rule,
        unit_size_grams=model.unit_size_grams,
        eaten_factor=model.eaten_factor,
        seasoning_rate=model.seasoning_rate,
        paired_item_id=model.paired_item_id,
        current_grams=model.current_grams,
        counts_toward_totals=counts,
    )


def _target_dict(target: MacroTarget) -> Dict[str, float]:
    return {
        "calories": target.calories,
        "protein": target.protein_g,
        "carbs": target.carbs_g,
        "fat": target.fat_g,
    }


@app.post("/api/solve")
def solve_portions(request: SolveRequest) -> Dict[str, Any]:
    try:
        items = [_build_item(m) for m in request.items]
        target = MacroTarget(
            calories=request.target.calories,
            protein_g=request.target.protein,
            carbs_g=request.target.carbs,
            fat_g=request.target.fat,
        )
        tol = request.tolerances
        options = SolverOptions(
            max_iterations=request.max_iterations,
            tolerances=ToleranceWindow.symmetric(tol.calories, tol.protein, tol.carbs, tol.fat),
            seasonings_count_macros=request.seasonings_count_macros,
            debug_mode=request.debug_mode,
        )
        logger.info("API solve request with %d item(s)", len(items))
        result = solve(items, target, options)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return format_result_json(result, items, target)


@app.post("/api/meal-plans/solve")
def solve_meal_plan(request: MealPlanSolveRequest) -> Dict[str, Any]:
    """Solve stored meal plan rows against a product list; fat is derived."""
    try:
        products = {p.id: p for p in (parse_product(d) for d in request.products)}
        items = []
        eligibility = []
        for entry in (parse_entry(d) for d in request.items):
            if entry.product_id not in products:
                raise ProductNotFoundError(entry.product_id)
            product = products[entry.product_id]
            warning = eligibility_warning(entry, product)
            if warning:
                eligibility.append(warning)
            items.append(entry_to_item(entry, product))
        target = build_target(request.calories, request.protein, request.carbs)
        options = SolverOptions(
            max_iterations=request.max_iterations,
            seasonings_count_macros=request.seasonings_count_macros,
        )
        result = solve(items, target, options)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    response = format_result_json(result, items, target)
    response["warnings"] = eligibility + response["warnings"]
    return response


@app.post("/api/targets")
def resolve_targets(request: TargetsRequest) -> Dict[str, Any]:
    try:
        settings = NutritionSettings(**request.settings.model_dump()) if request.settings else None
        overrides = [parse_weekly_override(o) for o in request.weekly_overrides]
        target = resolve_daily_targets(request.plan_date, settings, overrides)
    except (KeyError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"date": request.plan_date.isoformat(), "target": _target_dict(target)}


@app.post("/api/targets/calculate")
def calculate_targets(request: CalculatorRequest) -> Dict[str, Any]:
    """BMR, TDEE and macro targets from body stats."""
    data = CalculatorInput(
        age=request.age,
        sex=request.sex,
        height_cm=request.height_cm,
        weight_kg=request.weight_kg,
        activity_level=request.activity_level,
        formula=request.formula,
        body_fat_percent=request.body_fat_percent,
    )
    rules = MacroRules(protein_per_kg=request.protein_per_kg, fat_per_kg=request.fat_per_kg)
    try:
        output = calculate_nutrition_targets(data, request.goal, rules)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "bmr": output.bmr,
        "tdee": output.tdee,
        "target_calories": output.target_calories,
        "protein": output.protein_g,
        "carbs": output.carbs_g,
        "fat": output.fat_g,
        "balanced": verify_macro_balance(output),
    }


@app.post("/api/schedules/zigzag")
def zigzag_schedule(request: ZigzagRequest) -> Dict[str, Any]:
    schedule = build_zigzag_schedule(request.tdee, request.plan_mode, request.shape)
    return {
        "schedule": schedule.to_dict(),
        "weekly_total": schedule.total(),
        "weekly_average": weekly_average(schedule),
    }


if __name__ == "__main__":
    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
