"""Default badge catalog, upserted on startup."""

from __future__ import annotations

import logging

from ilab.stores import Stores

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # First actions
    {
        "slug": "first-project",
        "name": "First Steps",
        "description": "Submitted your first hackathon project",
        "icon": "🚀",
        "xp_required": 0,
        "rarity": "common",
    },
    {
        "slug": "first-challenge",
        "name": "Challenge Accepted",
        "description": "Completed your first coding challenge",
        "icon": "💻",
        "xp_required": 0,
        "rarity": "common",
    },
    {
        "slug": "first-team",
        "name": "Team Player",
        "description": "Created or joined your first team",
        "icon": "👥",
        "xp_required": 0,
        "rarity": "common",
    },
    # Level milestones (xp_required mirrors level_curve.LEVEL_THRESHOLDS)
    {
        "slug": "level-5",
        "name": "Rising Star",
        "description": "Reached level 5",
        "icon": "⭐",
        "xp_required": 1000,
        "rarity": "uncommon",
    },
    {
        "slug": "level-10",
        "name": "Expert Developer",
        "description": "Reached level 10",
        "icon": "🌟",
        "xp_required": 11000,
        "rarity": "rare",
    },
    {
        "slug": "level-15",
        "name": "Master Coder",
        "description": "Reached level 15",
        "icon": "💎",
        "xp_required": 41000,
        "rarity": "epic",
    },
    {
        "slug": "level-20",
        "name": "Legend",
        "description": "Reached level 20",
        "icon": "👑",
        "xp_required": 100000,
        "rarity": "legendary",
    },
    # Streaks
    {
        "slug": "streak-7",
        "name": "Week Warrior",
        "description": "Maintained a 7-day login streak",
        "icon": "🔥",
        "xp_required": 0,
        "rarity": "uncommon",
    },
    {
        "slug": "streak-30",
        "name": "Monthly Master",
        "description": "Maintained a 30-day login streak",
        "icon": "🔥🔥",
        "xp_required": 0,
        "rarity": "rare",
    },
    # Hackathons
    {
        "slug": "first-win",
        "name": "Victory!",
        "description": "Won your first hackathon",
        "icon": "🏆",
        "xp_required": 0,
        "rarity": "rare",
    },
    {
        "slug": "triple-threat",
        "name": "Triple Threat",
        "description": "Won three hackathons",
        "icon": "🥇",
        "xp_required": 0,
        "rarity": "epic",
    },
    {
        "slug": "hackathon-legend",
        "name": "Hackathon Legend",
        "description": "Won ten hackathons",
        "icon": "👑🏆",
        "xp_required": 0,
        "rarity": "legendary",
    },
    # Challenges
    {
        "slug": "challenge-champion",
        "name": "Challenge Champion",
        "description": "Won 5 coding challenges",
        "icon": "🥊",
        "xp_required": 0,
        "rarity": "rare",
    },
    {
        "slug": "challenge-master",
        "name": "Challenge Master",
        "description": "Won 20 coding challenges",
        "icon": "🎯",
        "xp_required": 0,
        "rarity": "epic",
    },
    {
        "slug": "perfect-score",
        "name": "Perfect Score",
        "description": "Received a perfect 100/100 score on a challenge",
        "icon": "💯",
        "xp_required": 0,
        "rarity": "rare",
    },
    # Teams
    {
        "slug": "team-leader",
        "name": "Natural Leader",
        "description": "Led 5 different teams",
        "icon": "🎖️",
        "xp_required": 0,
        "rarity": "uncommon",
    },
    {
        "slug": "solo-hero",
        "name": "Solo Hero",
        "description": "Won a hackathon as a one-person team",
        "icon": "🦸",
        "xp_required": 0,
        "rarity": "epic",
    },
    # XP milestones
    {
        "slug": "xp-1k",
        "name": "Thousand Club",
        "description": "Earned 1,000 total XP",
        "icon": "💪",
        "xp_required": 1000,
        "rarity": "uncommon",
    },
    {
        "slug": "xp-5k",
        "name": "Five Thousand",
        "description": "Earned 5,000 total XP",
        "icon": "💪💪",
        "xp_required": 5000,
        "rarity": "rare",
    },
    {
        "slug": "xp-10k",
        "name": "Ten Thousand Strong",
        "description": "Earned 10,000 total XP",
        "icon": "⚡",
        "xp_required": 10000,
        "rarity": "epic",
    },
    {
        "slug": "xp-50k",
        "name": "Unstoppable Force",
        "description": "Earned 50,000 total XP",
        "icon": "⚡⚡",
        "xp_required": 50000,
        "rarity": "legendary",
    },
    # Special
    {
        "slug": "early-bird",
        "name": "Early Bird",
        "description": "One of the first 100 users on the platform",
        "icon": "🐦",
        "xp_required": 0,
        "rarity": "rare",
    },
    {
        "slug": "mentor",
        "name": "Mentor",
        "description": "Helped judge 10 hackathon submissions",
        "icon": "🎓",
        "xp_required": 0,
        "rarity": "uncommon",
    },
    {
        "slug": "contributor",
        "name": "Contributor",
        "description": "Submitted solutions to 20 challenges",
        "icon": "📝",
        "xp_required": 0,
        "rarity": "uncommon",
    },
    {
        "slug": "innovator",
        "name": "Innovator",
        "description": "Created a challenge that received 50+ submissions",
        "icon": "💡",
        "xp_required": 0,
        "rarity": "epic",
    },
]


async def seed_badges(stores: Stores) -> int:
    """Upsert the default badge catalog. Returns number of badges seeded."""
    for badge_data in BADGE_SEED_DATA:
        await stores.badges.upsert(**badge_data)
    await stores.commit()
    logger.info("Seeded %d badge definitions", len(BADGE_SEED_DATA))
    return len(BADGE_SEED_DATA)
