"""XP, levels, streaks, badges and leaderboards."""
