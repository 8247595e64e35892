"""Domain modules: levels, prompts, streaks and progression."""
