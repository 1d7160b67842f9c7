# athletrack/routers/nutrition.py
from datetime import date

from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.models.nutrition import CalorieCalcIn, MealIn, MealUpdate, NutritionGoalIn
from athletrack.services.nutrition import NutritionService
from athletrack.utils.helpers import convert_objectids_to_strings, serialize

router = APIRouter(prefix="/api/nutrition", tags=["Nutrition"])


@router.post("/meals", status_code=201)
def log_meal(payload: MealIn, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    result = NutritionService(repos).log_meal(user_id, payload.dict())
    return {"meal": serialize(result["meal"]), "new_badges": convert_objectids_to_strings(result["new_badges"])}


@router.get("/meals/{day}")
def meals_for_day(day: date, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    meals = NutritionService(repos).meals_for_day(user_id, day)
    return {"meals": [serialize(m) for m in meals], "date": day.isoformat()}


@router.put("/meals/{meal_id}")
def update_meal(meal_id: str, payload: MealUpdate, user_id: str = Depends(get_current_user_id),
                repos=Depends(get_repositories)):
    return serialize(NutritionService(repos).update_meal(user_id, meal_id, payload.dict(exclude_none=True)))


@router.delete("/meals/{meal_id}")
def delete_meal(meal_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    NutritionService(repos).delete_meal(user_id, meal_id)
    return {"message": "Meal deleted"}


@router.get("/summary/{day}")
def daily_summary(day: date, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return convert_objectids_to_strings(NutritionService(repos).daily_summary(user_id, day))


@router.get("/stats")
def weekly_stats(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return NutritionService(repos).weekly_stats(user_id)


@router.get("/goal")
def get_goal(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return serialize(NutritionService(repos).get_goal(user_id))


@router.put("/goal")
def update_goal(payload: NutritionGoalIn, user_id: str = Depends(get_current_user_id),
                repos=Depends(get_repositories)):
    return serialize(NutritionService(repos).update_goal(user_id, payload.dict()))


@router.post("/calculate")
def calculate_calories(payload: CalorieCalcIn, user_id: str = Depends(get_current_user_id)):
    return NutritionService.calculate_calories(payload.dict())
