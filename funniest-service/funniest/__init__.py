"""Funniest 67: caption leaderboard and swipe-to-vote service."""
