# athletrack/services/badge_definitions.py
"""
Static badge reference data.

Each badge is earned once the named metric reaches its threshold. The metric
names are the keys produced by the aggregate collectors in
`athletrack.services.badges`.
"""
from types import MappingProxyType


def _badge(badge_id, name, description, icon, category, rarity, metric, threshold):
    return badge_id, MappingProxyType({
        "id": badge_id,
        "name": name,
        "description": description,
        "icon": icon,
        "category": category,
        "rarity": rarity,
        "metric": metric,
        "threshold": threshold,
    })


_DEFINITIONS = [
    # Workout counts
    _badge("first_workout", "First Steps", "Complete your first workout", "🎯", "milestone", "common", "workout_count", 1),
    _badge("workouts_10", "Getting Started", "Complete 10 workouts", "🏃", "milestone", "common", "workout_count", 10),
    _badge("workouts_50", "Dedicated Athlete", "Complete 50 workouts", "🏅", "milestone", "rare", "workout_count", 50),
    _badge("workouts_100", "Workout Centurion", "Complete 100 workouts", "🏆", "milestone", "epic", "workout_count", 100),
    _badge("workouts_500", "Iron Will", "Complete 500 workouts", "⚡", "milestone", "legendary", "workout_count", 500),

    # Streaks
    _badge("streak_7", "Week Warrior", "Maintain a 7-day workout streak", "🔥", "consistency", "common", "current_streak", 7),
    _badge("streak_30", "Monthly Master", "Maintain a 30-day workout streak", "💪", "consistency", "rare", "current_streak", 30),
    _badge("streak_100", "Century Champion", "Maintain a 100-day workout streak", "👑", "consistency", "legendary", "current_streak", 100),

    # Run + cardio distance
    _badge("distance_50", "First 50K", "Cover a total of 50 kilometers", "📏", "distance", "common", "total_distance_km", 50),
    _badge("distance_100", "Century Runner", "Cover a total of 100 kilometers", "🛤️", "distance", "rare", "total_distance_km", 100),
    _badge("distance_500", "Long Distance Champion", "Cover a total of 500 kilometers", "🌍", "distance", "epic", "total_distance_km", 500),
    _badge("distance_1000", "Marathon Legend", "Cover a total of 1000 kilometers", "🚀", "distance", "legendary", "total_distance_km", 1000),

    # Personal records
    _badge("first_pr", "Personal Best", "Set your first personal record", "🏅", "achievement", "common", "personal_records", 1),
    _badge("pr_5", "Record Breaker", "Set 5 personal records", "💪", "achievement", "rare", "personal_records", 5),
    _badge("pr_10", "PR Hunter", "Set 10 personal records", "🎖️", "achievement", "epic", "personal_records", 10),

    # Goals
    _badge("first_goal", "Goal Setter", "Complete your first goal", "🎯", "goals", "common", "goals_completed", 1),
    _badge("goals_5", "Goal Crusher", "Complete 5 goals", "✅", "goals", "rare", "goals_completed", 5),
    _badge("goals_10", "Unstoppable", "Complete 10 goals", "🌟", "goals", "epic", "goals_completed", 10),

    # Time of day and calendar
    _badge("early_bird", "Early Bird", "Complete a workout before 6 AM", "🌅", "special", "rare", "early_sessions", 1),
    _badge("night_owl", "Night Owl", "Complete a workout after 10 PM", "🌙", "special", "rare", "late_sessions", 1),
    _badge("weekend_warrior", "Weekend Warrior", "Work out on both Saturday and Sunday in the same week", "🗓️",
           "special", "common", "weekend_weeks", 1),

    # Wellness sessions
    _badge("yoga_first", "First Flow", "Complete your first yoga session", "🧘", "wellness", "common", "yoga_sessions", 1),
    _badge("yoga_10", "Finding Balance", "Complete 10 yoga sessions", "🪷", "wellness", "common", "yoga_sessions", 10),
    _badge("yoga_50", "Yogi", "Complete 50 yoga sessions", "🕉️", "wellness", "epic", "yoga_sessions", 50),
    _badge("yoga_streak_7", "Mindful Week", "Practice yoga 7 days in a row", "🌿", "wellness", "rare", "yoga_streak", 7),
    _badge("meditation_100", "Inner Calm", "Accumulate 100 minutes of meditation", "☮️", "wellness", "rare",
           "meditation_minutes", 100),

    # Challenges
    _badge("challenge_finisher", "Finisher", "Reach the target of a challenge", "🏁", "challenge", "common",
           "challenges_finished", 1),
    _badge("challenge_top3", "Podium", "Finish a challenge in the top 3", "🥉", "challenge", "rare", "challenge_podiums", 1),
    _badge("challenge_winner", "Champion", "Win a challenge", "🥇", "challenge", "epic", "challenge_wins", 1),
    _badge("challenge_creator", "Organizer", "Create 5 challenges", "📣", "challenge", "rare", "challenges_created", 5),
    _badge("challenge_streak", "Serial Finisher", "Complete 10 challenges", "🔗", "challenge", "legendary",
           "challenges_finished", 10),

    # Nutrition
    _badge("nutrition_first", "First Bite", "Log your first meal", "🍽️", "nutrition", "common", "meals_logged", 1),
    _badge("nutrition_7day", "Consistent Eater", "Log meals 7 days in a row", "🥗", "nutrition", "rare",
           "nutrition_streak", 7),
    _badge("nutrition_protein", "Protein Pro", "Hit your protein target on 10 days", "🥩", "nutrition", "rare",
           "protein_target_days", 10),
]

BADGES = MappingProxyType(dict(_DEFINITIONS))

CATEGORIES = ("milestone", "consistency", "distance", "achievement", "goals", "special",
              "wellness", "challenge", "nutrition")
