"""
progress-core: adaptive assessment and gamification core.

Turns raw answer events into:
- A bounded proficiency estimate (diagnostic and simulated-exam modes)
- An XP ledger with derived levels, a daily streak and daily goals
- One-time achievements granting bonus XP
- The error notebook lifecycle of missed questions
"""

__version__ = "1.0.0"
