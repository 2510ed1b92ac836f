"""Tests for the FastAPI server."""
from fastapi.testclient import TestClient

from src.api.server import app

client = TestClient(app)

CHICKEN = {
    "id": "chicken",
    "name": "Chicken breast",
    "category": "protein",
    "meal": "dinner",
    "per_100g": {"calories": 165, "protein": 31, "carbs": 0, "fat": 3.6},
    "min_grams": 100,
    "max_grams": 300,
    "step_grams": 10,
    "rounding_rule": "nearest_10g",
}

RICE = {
    "id": "rice",
    "name": "White rice",
    "category": "carb",
    "meal": "dinner",
    "per_100g": {"calories": 130, "protein": 2.7, "carbs": 28, "fat": 0.3},
    "min_grams": 80,
    "max_grams": 250,
    "step_grams": 10,
    "rounding_rule": "nearest_10g",
}


class TestSolveEndpoint:
    def test_success(self):
        response = client.post(
            "/api/solve",
            json={"items": [CHICKEN, RICE], "target": {"calories": 430, "protein": 50, "carbs": 38, "fat": 5}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert set(data["portions"]) == {"chicken", "rice"}
        assert data["items"][0]["display"].endswith("Chicken breast")

    def test_failure_is_still_200(self):
        response = client.post(
            "/api/solve",
            json={"items": [RICE], "target": {"calories": 2000, "protein": 150, "carbs": 200, "fat": 67}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["reason"] == "impossible_targets"
        assert data["best_effort_portions"]["rice"] == 250

    def test_debug_trace_included(self):
        response = client.post(
            "/api/solve",
            json={
                "items": [CHICKEN, RICE],
                "target": {"calories": 430, "protein": 50, "carbs": 38, "fat": 5},
                "debug_mode": True,
            },
        )
        assert response.json()["debug_trace"][0]["strategy"] == "macro_balance"

    def test_invalid_item_is_400(self):
        bad = dict(CHICKEN, min_grams=400)
        response = client.post(
            "/api/solve",
            json={"items": [bad], "target": {"calories": 430, "protein": 50, "carbs": 38, "fat": 5}},
        )
        assert response.status_code == 400
        assert "exceeds max_grams" in response.json()["detail"]

    def test_duplicate_ids_is_400(self):
        response = client.post(
            "/api/solve",
            json={"items": [CHICKEN, CHICKEN], "target": {"calories": 430, "protein": 50, "carbs": 38, "fat": 5}},
        )
        assert response.status_code == 400

    def test_unknown_category_is_422(self):
        bad = dict(CHICKEN, category="meat")
        response = client.post(
            "/api/solve",
            json={"items": [bad], "target": {"calories": 430, "protein": 50, "carbs": 38, "fat": 5}},
        )
        assert response.status_code == 422


class TestMealPlanSolveEndpoint:
    PRODUCTS = [
        {
            "id": "pasta",
            "name": "Pasta",
            "calories_per_100g": 100,
            "protein_per_100g": 0,
            "carbs_per_100g": 25,
            "fat_per_100g": 0,
            "food_type": "carb",
        }
    ]

    def test_unknown_product_is_404(self):
        response = client.post(
            "/api/meal-plans/solve",
            json={
                "products": self.PRODUCTS,
                "items": [{"id": "e1", "product_id": "tofu", "meal_type": "lunch"}],
                "calories": 2000,
                "protein": 150,
                "carbs": 200,
            },
        )
        assert response.status_code == 404
        assert "tofu" in response.json()["detail"]

    def test_solves_rows(self):
        response = client.post(
            "/api/meal-plans/solve",
            json={
                "products": self.PRODUCTS,
                "items": [{"id": "e1", "product_id": "pasta", "meal_type": "lunch"}],
                "calories": 2000,
                "protein": 150,
                "carbs": 200,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["target"]["fat"] == 67
        assert data["success"] is False

    def test_ineligible_row_reported_in_warnings(self):
        products = [dict(self.PRODUCTS[0], meal_eligibility=["lunch", "dinner"])]
        response = client.post(
            "/api/meal-plans/solve",
            json={
                "products": products,
                "items": [{"id": "e1", "product_id": "pasta", "meal_type": "breakfast"}],
                "calories": 2000,
                "protein": 150,
                "carbs": 200,
            },
        )
        assert response.status_code == 200
        assert response.json()["warnings"][0] == "Pasta is not allowed for breakfast (allowed: lunch, dinner)"

    def test_bad_meal_type_is_400(self):
        response = client.post(
            "/api/meal-plans/solve",
            json={
                "products": self.PRODUCTS,
                "items": [{"id": "e1", "product_id": "pasta", "meal_type": "brunch"}],
                "calories": 2000,
                "protein": 150,
                "carbs": 200,
            },
        )
        assert response.status_code == 400


class TestTargetsEndpoint:
    def test_defaults(self):
        response = client.post("/api/targets", json={"plan_date": "2024-01-03"})
        assert response.status_code == 200
        assert response.json()["target"] == {"calories": 2000, "protein": 150, "carbs": 200, "fat": 67}

    def test_override_applies_to_its_week(self):
        schedule = {day: 1800 for day in ("monday", "tuesday", "wednesday", "thursday", "friday")}
        schedule.update({"saturday": 2400, "sunday": 2400})
        response = client.post(
            "/api/targets",
            json={
                "plan_date": "2024-01-06",
                "settings": {"daily_calorie_target": 2200, "protein_target_grams": 160, "carbs_target_grams": 220},
                "weekly_overrides": [{"week_start_date": "2024-01-01", "schedule": schedule}],
            },
        )
        assert response.status_code == 200
        assert response.json()["target"]["calories"] == 2400

    def test_bad_override_is_400(self):
        response = client.post(
            "/api/targets",
            json={"plan_date": "2024-01-03", "weekly_overrides": [{"week_start_date": "2024-01-02", "schedule": {}}]},
        )
        assert response.status_code == 400


class TestCalculateTargetsEndpoint:
    BODY = {
        "age": 30,
        "sex": "male",
        "height_cm": 180,
        "weight_kg": 80,
        "activity_level": "moderately_active",
    }

    def test_maintain(self):
        response = client.post("/api/targets/calculate", json=self.BODY)
        assert response.status_code == 200
        assert response.json() == {
            "bmr": 1780,
            "tdee": 2759,
            "target_calories": 2759,
            "protein": 176,
            "carbs": 370,
            "fat": 64,
            "balanced": True,
        }

    def test_tdee_feeds_zigzag(self):
        tdee = client.post("/api/targets/calculate", json=dict(self.BODY, goal="cut")).json()["tdee"]
        response = client.post("/api/schedules/zigzag", json={"tdee": tdee, "plan_mode": "maintain"})
        assert response.json()["weekly_total"] == 2759 * 7

    def test_katch_mcardle_without_body_fat_is_400(self):
        response = client.post("/api/targets/calculate", json=dict(self.BODY, formula="katch_mcardle"))
        assert response.status_code == 400
        assert "body fat" in response.json()["detail"]

    def test_unknown_activity_level_is_422(self):
        response = client.post("/api/targets/calculate", json=dict(self.BODY, activity_level="couch"))
        assert response.status_code == 422


class TestZigzagEndpoint:
    def test_weekend_high(self):
        response = client.post(
            "/api/schedules/zigzag", json={"tdee": 2500, "plan_mode": "loss", "shape": "weekend_high"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["schedule"]["saturday"] == 2500
        assert data["schedule"]["monday"] == 1800
        assert data["weekly_total"] == 14000
        assert data["weekly_average"] == 2000
