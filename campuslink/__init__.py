"""
CampusLink Mentorship
Skill-based mentor matching with moderated private chats.

Architecture:
- MongoDB: profiles, mentor requests, chat rooms, messages, chat reports
- DeepSeek AI: content moderation only (not a database!)
- FastAPI: REST + WebSocket surface
"""

__version__ = "1.0.0"
