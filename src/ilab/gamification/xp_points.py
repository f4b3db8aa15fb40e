"""XP point values awarded for platform actions."""

from __future__ import annotations

XP_POINTS: dict[str, int] = {
    # Hackathon actions
    "JOIN_HACKATHON": 10,
    "SUBMIT_PROJECT": 50,
    "FINALIZE_SUBMISSION": 25,
    "WIN_HACKATHON_1ST": 500,
    "WIN_HACKATHON_2ND": 300,
    "WIN_HACKATHON_3RD": 200,
    "RECEIVE_JUDGE_SCORE": 10,  # per judge score
    # Challenge actions
    "SUBMIT_CHALLENGE_SOLUTION": 30,
    "CHALLENGE_ACCEPTED": 100,
    "CHALLENGE_WINNER": 300,
    # Team actions
    "CREATE_TEAM": 15,
    "JOIN_TEAM": 10,
    # Engagement
    "DAILY_LOGIN": 5,
    "STREAK_BONUS_7DAYS": 50,
    "STREAK_BONUS_30DAYS": 200,
    "FIRST_PROJECT": 100,
    "FIRST_CHALLENGE": 50,
}
