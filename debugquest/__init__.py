"""
DebugQuest - lesson progression and gamification engine for a
"debug the code" practice platform.
"""

__version__ = "0.1.0"
