"""SkillForge core API: streaks, XP, achievements and practice photos."""

__version__ = "0.1.0"
