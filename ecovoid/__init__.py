"""
Ecovoid - Rules engine for a survival card game

A lone survivor keeps a failing outpost alive against the Eco, a hostile
intelligence, using a standard 52-card deck. The engine provides:
- State management with change notification
- Data-driven card rules
- The phase state machine and the Eco's decisions
- Scoring, chapters and a persisted player profile
"""

__version__ = "0.1.0"
